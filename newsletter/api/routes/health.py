"""Liveness probe."""

from fastapi import APIRouter, Response

router = APIRouter()


@router.get("/health")
async def health_check() -> Response:
    """Return 200 with an empty body while the process is serving."""
    return Response(status_code=200)
