"""Tests for POST /newsletters (HTTP Basic authenticated publishing)."""

import base64
from datetime import UTC, datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.models import Subscription, SubscriptionStatus
from tests.conftest import MockMailServer, PublisherAccount, basic_auth_header

_REALM = 'Basic realm="publish"'
_NO_COLON = base64.b64encode(b"no-colon").decode()
_NOT_UTF8 = base64.b64encode(b"\xff\xfe:pw").decode()

_BODY = {
    "title": "Newsletter title",
    "content": {
        "html": "<p>Newsletter body as HTML</p>",
        "text": "Newsletter body as plain text",
    },
}


async def _create_confirmed_subscriber(
    client: AsyncClient, mail_server: MockMailServer, email: str
) -> None:
    """Subscribe through the API and follow the confirmation link."""
    await client.post("/subscriptions", data={"name": "le guin", "email": email})
    link = next(
        word
        for word in mail_server.bodies[-1]["TextBody"].split()
        if "subscription_token=" in word
    )
    token = link.split("subscription_token=", 1)[1]
    response = await client.get(
        "/subscriptions/confirm", params={"subscription_token": token}
    )
    assert response.status_code == 200


async def _create_pending_subscriber(client: AsyncClient, email: str) -> None:
    await client.post("/subscriptions", data={"name": "le guin", "email": email})


class TestPublishAuthentication:
    """Every credential failure is 401 with the publish realm."""

    async def test_missing_authorization_is_rejected(
        self, client: AsyncClient, mail_server: MockMailServer
    ) -> None:
        response = await client.post("/newsletters", json=_BODY)

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == _REALM
        assert mail_server.requests == []

    @pytest.mark.parametrize(
        "header",
        [
            "Bearer some-token",
            "Basic !!!not-base64!!!",
            f"Basic {_NO_COLON}",
            f"Basic {_NOT_UTF8}",
            "Basic ",
            "Basic",
        ],
    )
    async def test_malformed_authorization_is_rejected(
        self, client: AsyncClient, header: str
    ) -> None:
        response = await client.post(
            "/newsletters", json=_BODY, headers={"Authorization": header}
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == _REALM

    async def test_wrong_password_is_rejected(
        self, client: AsyncClient, test_user: PublisherAccount
    ) -> None:
        response = await client.post(
            "/newsletters",
            json=_BODY,
            headers=basic_auth_header(test_user.username, "wrong password"),
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == _REALM

    async def test_unknown_user_is_rejected(
        self, client: AsyncClient, test_user: PublisherAccount
    ) -> None:
        response = await client.post(
            "/newsletters",
            json=_BODY,
            headers=basic_auth_header("nobody", test_user.password),
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == _REALM

    async def test_scheme_is_case_insensitive(
        self, client: AsyncClient, test_user: PublisherAccount
    ) -> None:
        header = basic_auth_header(test_user.username, test_user.password)
        header["Authorization"] = header["Authorization"].replace("Basic", "basic")

        response = await client.post("/newsletters", json=_BODY, headers=header)

        assert response.status_code == 200

    async def test_authentication_is_checked_before_body(
        self, client: AsyncClient
    ) -> None:
        response = await client.post("/newsletters", json={"title": "only"})

        assert response.status_code == 401


class TestPublish:
    """Fan-out through the HTTP surface."""

    async def test_only_confirmed_subscribers_receive_issue(
        self,
        client: AsyncClient,
        mail_server: MockMailServer,
        test_user: PublisherAccount,
    ) -> None:
        await _create_confirmed_subscriber(client, mail_server, "confirmed@example.com")
        await _create_pending_subscriber(client, "pending@example.com")
        mail_server.requests.clear()

        response = await client.post(
            "/newsletters",
            json=_BODY,
            headers=basic_auth_header(test_user.username, test_user.password),
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"delivered": 1, "skipped": 0}}
        assert mail_server.recipients == ["confirmed@example.com"]
        assert mail_server.bodies[0]["Subject"] == "Newsletter title"

    async def test_no_subscribers_is_success(
        self,
        client: AsyncClient,
        mail_server: MockMailServer,
        test_user: PublisherAccount,
    ) -> None:
        response = await client.post(
            "/newsletters",
            json=_BODY,
            headers=basic_auth_header(test_user.username, test_user.password),
        )

        assert response.status_code == 200
        assert mail_server.requests == []

    @pytest.mark.parametrize(
        "body",
        [
            {"title": "Newsletter!"},
            {"content": {"text": "plain", "html": "<p>html</p>"}},
            {"title": "Newsletter!", "content": {"text": "plain"}},
        ],
    )
    async def test_invalid_body_returns_400(
        self,
        client: AsyncClient,
        test_user: PublisherAccount,
        body: dict,
    ) -> None:
        response = await client.post(
            "/newsletters",
            json=body,
            headers=basic_auth_header(test_user.username, test_user.password),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_send_failure_returns_500(
        self,
        client: AsyncClient,
        mail_server: MockMailServer,
        test_user: PublisherAccount,
    ) -> None:
        await _create_confirmed_subscriber(client, mail_server, "confirmed@example.com")
        mail_server.status_code = 500

        response = await client.post(
            "/newsletters",
            json=_BODY,
            headers=basic_auth_header(test_user.username, test_user.password),
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert "confirmed@example.com" not in response.text

    async def test_skipped_subscribers_are_reported(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        test_user: PublisherAccount,
    ) -> None:
        db_session.add(
            Subscription(
                email="not-an-email",
                name="drifted",
                subscribed_at=datetime.now(UTC),
                status=SubscriptionStatus.CONFIRMED.value,
            )
        )
        await db_session.commit()

        response = await client.post(
            "/newsletters",
            json=_BODY,
            headers=basic_auth_header(test_user.username, test_user.password),
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"delivered": 0, "skipped": 1}}
