"""Subscription endpoints.

Endpoints:
- POST /subscriptions: form ``name``/``email``; create pending subscriber
- GET /subscriptions/confirm: redeem ``subscription_token``

Domain errors propagate to the handler registered in create_app(), which
maps them with to_api_error().
"""

from typing import Annotated

from fastapi import APIRouter, Form, Query, Request, Response

from newsletter.api.deps import AppSettings, DbSession, MailClient
from newsletter.core.rate_limiting import limiter, limits
from newsletter.services import subscription_service

router = APIRouter()


# ===================================================================
# POST /subscriptions
# ===================================================================


@router.post("/subscriptions")
@limiter.limit(lambda: limits.subscribe)
async def subscribe(
    request: Request,  # noqa: ARG001
    name: Annotated[str, Form()],
    email: Annotated[str, Form()],
    db: DbSession,
    email_client: MailClient,
    settings: AppSettings,
) -> Response:
    """Register a subscriber and send the confirmation email.

    Returns 200 with an empty body. 400 on invalid name/email (nothing
    stored), 500 when storage or the mail provider fails.

    Rate limit: RATE_LIMIT_SUBSCRIBE per IP.
    """
    await subscription_service.subscribe(
        db, email_client, settings.base_url, name, email
    )
    return Response(status_code=200)


# ===================================================================
# GET /subscriptions/confirm
# ===================================================================


@router.get("/subscriptions/confirm")
async def confirm(
    subscription_token: Annotated[str, Query()],
    db: DbSession,
) -> Response:
    """Confirm the subscription owning ``subscription_token``.

    Idempotent. Any unknown token gives 401 regardless of its shape.
    """
    await subscription_service.confirm(db, subscription_token)
    return Response(status_code=200)
