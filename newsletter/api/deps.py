"""Shared dependencies for API endpoints.

Every process-wide collaborator (settings, DB session factory, mail client)
is read from ``request.app.state``, where create_app() put it. Handlers get
them only through these dependencies.

Authentication dependencies:
- get_logged_in_user_id: cookie session (admin pages); anonymous -> 303 /login
- get_publisher_id: HTTP Basic (POST /newsletters); failure -> 401 + realm
"""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.core.config import Settings
from newsletter.core.database import get_db
from newsletter.core.email import EmailClient
from newsletter.domain.errors import AuthError, PublishAuthError
from newsletter.services.credentials import Credentials, validate_credentials
from newsletter.services.session_store import TypedSession

LOGIN_PATH = "/login"


def get_settings(request: Request) -> Settings:
    """Settings built by the application factory."""
    return request.app.state.settings


def get_email_client(request: Request) -> EmailClient:
    """Shared mail gateway client."""
    return request.app.state.email_client


DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
MailClient = Annotated[EmailClient, Depends(get_email_client)]


async def get_session(
    request: Request,
    db: DbSession,
    settings: AppSettings,
) -> TypedSession:
    """Load the server-side session named by the request cookie.

    Args:
        request: HTTP request (injected by FastAPI).
        db: Database session for the session lookup (injected).
        settings: Application settings (injected).

    Returns:
        TypedSession, empty when the cookie is absent, forged or expired.
    """
    return await TypedSession.load(
        db,
        request.cookies.get(settings.session_cookie_name),
        secret=settings.hmac_secret.get_secret_value().encode(),
        ttl=settings.session_ttl,
    )


CurrentSession = Annotated[TypedSession, Depends(get_session)]


async def get_logged_in_user_id(session: CurrentSession) -> uuid.UUID:
    """Require an authenticated session.

    Raises:
        HTTPException: 303 redirect to the login page for anonymous sessions.
    """
    user_id = session.get_user_id()
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            headers={"Location": LOGIN_PATH},
        )
    return user_id


LoggedInUserId = Annotated[uuid.UUID, Depends(get_logged_in_user_id)]


# Decoding only; every failure is re-raised as PublishAuthError
_publish_basic = HTTPBasic(realm="publish", auto_error=False)


async def basic_authentication(request: Request) -> Credentials:
    """Read ``Authorization: Basic <base64(username:password)>``.

    Raises:
        PublishAuthError: If the header is missing, uses another scheme, or
            does not decode to ``username:password``.
    """
    try:
        basic = await _publish_basic(request)
    except HTTPException as exc:
        raise PublishAuthError("Failed to decode 'Basic' credentials.") from exc
    if basic is None:
        raise PublishAuthError("Missing 'Basic' authorization header.")
    return Credentials(username=basic.username, password=SecretStr(basic.password))


async def get_publisher_id(request: Request, db: DbSession) -> uuid.UUID:
    """Authenticate the publisher of a newsletter issue.

    Raises:
        PublishAuthError: Missing/undecodable header or any credential
            failure (wrong password, unknown user, storage error).
    """
    credentials = await basic_authentication(request)
    try:
        return await validate_credentials(db, credentials)
    except AuthError as exc:
        raise PublishAuthError("Publisher authentication failed.") from exc


PublisherId = Annotated[uuid.UUID, Depends(get_publisher_id)]
