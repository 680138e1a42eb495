"""Liveness endpoint."""

from fastapi import APIRouter

from printbroker.config import settings

router = APIRouter()


@router.get("/healthz")
def healthz():
    """Liveness only; /health also checks the database and Redis."""
    return {"status": "ok", "service": "printbroker", "environment": settings.environment}
