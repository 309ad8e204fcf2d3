"""Public landing page."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from newsletter.api import pages

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def home() -> HTMLResponse:
    """Landing page with the subscription form."""
    return HTMLResponse(pages.home_page())
