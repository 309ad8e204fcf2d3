"""Admin area (cookie session required).

Endpoints:
- GET /admin/dashboard: greeting for the logged-in publisher
- POST /admin/logout: end the session
"""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, RedirectResponse

from newsletter.api import pages
from newsletter.api.deps import (
    LOGIN_PATH,
    AppSettings,
    CurrentSession,
    DbSession,
    LoggedInUserId,
)
from newsletter.repositories.user_repository import UserRepository

router = APIRouter()

LOGOUT_MESSAGE = "You have successfully logged out."


@router.get("/admin/dashboard", response_class=HTMLResponse, response_model=None)
async def admin_dashboard(
    user_id: LoggedInUserId,
    db: DbSession,
    session: CurrentSession,
    settings: AppSettings,
) -> HTMLResponse | RedirectResponse:
    """Greet the logged-in publisher by username."""
    username = await UserRepository.get_username(db, user_id)
    if username is None:
        # Account removed since login
        await session.log_out()
        response: HTMLResponse | RedirectResponse = RedirectResponse(
            LOGIN_PATH, status_code=303
        )
    else:
        response = HTMLResponse(pages.dashboard_page(username))
        response.headers["Cache-Control"] = "no-store"
    session.apply_cookie(response, settings)
    return response


@router.post("/admin/logout")
async def log_out(
    user_id: LoggedInUserId,  # noqa: ARG001
    session: CurrentSession,
    settings: AppSettings,
) -> RedirectResponse:
    """Delete the session, flash a confirmation and go back to the login form."""
    await session.log_out()
    await session.set_flash(LOGOUT_MESSAGE)
    response = RedirectResponse(LOGIN_PATH, status_code=303)
    session.apply_cookie(response, settings)
    return response
