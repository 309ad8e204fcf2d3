"""Login form and credential submission.

Endpoints:
- GET /login: render the form with a one-shot flash and/or a signed error
- POST /login: validate credentials, rotate session, redirect

Every credential failure, whatever the cause, renders the same
"Authentication failed" message.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import SecretStr

from newsletter.api import pages
from newsletter.api.deps import LOGIN_PATH, AppSettings, CurrentSession, DbSession
from newsletter.core.errors import AUTHENTICATION_FAILED_MSG
from newsletter.core.rate_limiting import limiter, limits
from newsletter.core.signing import verify_error_query
from newsletter.domain.errors import AuthError, AuthUnexpectedError, IntegrityError
from newsletter.services.credentials import Credentials, validate_credentials

logger = structlog.get_logger()

router = APIRouter()

DASHBOARD_PATH = "/admin/dashboard"


# ===================================================================
# GET /login
# ===================================================================


@router.get("/login", response_class=HTMLResponse)
async def login_form(
    session: CurrentSession,
    settings: AppSettings,
    error: Annotated[str | None, Query()] = None,
    tag: Annotated[str | None, Query()] = None,
) -> HTMLResponse:
    """Render the login form.

    A pending flash message is shown once and then removed. An ``error``
    query parameter is shown only when ``tag`` is its valid HMAC; a bad tag
    is logged and the message dropped.
    """
    messages: list[str] = []

    flash = await session.pop_flash()
    if flash is not None:
        messages.append(flash)

    if error is not None:
        try:
            messages.append(
                verify_error_query(
                    error,
                    tag or "",
                    settings.hmac_secret.get_secret_value().encode(),
                )
            )
        except IntegrityError:
            logger.warning("login_error_query_rejected", reason="invalid HMAC tag")

    response = HTMLResponse(pages.login_page(messages))
    response.headers["Cache-Control"] = "no-store"
    session.apply_cookie(response, settings)
    return response


# ===================================================================
# POST /login
# ===================================================================


@router.post("/login")
@limiter.limit(lambda: limits.login)
async def login(
    request: Request,  # noqa: ARG001
    username: Annotated[str, Form()],
    password: Annotated[str, Form()],
    db: DbSession,
    session: CurrentSession,
    settings: AppSettings,
) -> RedirectResponse:
    """Authenticate a publisher.

    Success: rotate the session key, store the user id, 303 to the dashboard.
    Failure: flash "Authentication failed", 303 back to the login form.

    Rate limit: RATE_LIMIT_LOGIN per IP.
    """
    credentials = Credentials(username=username, password=SecretStr(password))
    log = logger.bind(username=username)

    try:
        user_id = await validate_credentials(db, credentials)
    except AuthError as exc:
        if isinstance(exc, AuthUnexpectedError):
            log.error("login_failed", exc_info=True)
        else:
            log.info("login_failed", reason="invalid credentials")
        await session.set_flash(AUTHENTICATION_FAILED_MSG)
        response = RedirectResponse(LOGIN_PATH, status_code=303)
        session.apply_cookie(response, settings)
        return response

    # A failure message from an earlier attempt must not follow the user in
    await session.pop_flash()
    await session.renew()
    await session.insert_user_id(user_id)
    log.info("login_succeeded", user_id=str(user_id))

    response = RedirectResponse(DASHBOARD_PATH, status_code=303)
    session.apply_cookie(response, settings)
    return response
