"""System routes for health checks."""

from fastapi import APIRouter

from dnote import __version__

router = APIRouter()


@router.get("/api/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}
