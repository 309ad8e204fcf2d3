"""Router aggregator.

All endpoint routers are included here; create_app() mounts the result at
the root (the HTML pages and /health have no version prefix).
"""

from fastapi import APIRouter

from newsletter.api.routes import (
    admin,
    health,
    home,
    login,
    newsletters,
    subscriptions,
)

router = APIRouter()

# =============================================================================
# Public pages and subscriber lifecycle
# =============================================================================

router.include_router(home.router, tags=["pages"])
router.include_router(subscriptions.router, tags=["subscriptions"])

# =============================================================================
# Publisher authentication and admin area
# =============================================================================

router.include_router(login.router, tags=["auth"])
router.include_router(admin.router, tags=["admin"])
router.include_router(newsletters.router, tags=["newsletters"])

# =============================================================================
# Operations
# =============================================================================

router.include_router(health.router, tags=["health"])
