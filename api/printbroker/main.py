"""Print broker API application."""

import logging

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from printbroker.api.v1 import api_router
from printbroker.config import settings
from printbroker.database import engine

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str = None) -> None:
    """Set the root log format and level once at start-up."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)


configure_logging()

app = FastAPI(
    title="Print Broker Service",
    description="Job numbering, pathway routing, tier pricing, profit split and payment workflow for brokered print jobs",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/v1")


def check_database() -> str:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database check failed: {e}")
        return f"error: {e}"
    return "connected"


def check_redis() -> str:
    """Ping the broker used for invoice notice tasks."""
    try:
        redis.from_url(settings.redis_url, socket_connect_timeout=1).ping()
    except Exception as e:
        logger.warning(f"Redis check failed: {e}")
        return f"error: {e}"
    return "connected"


@app.get("/health")
def health_check():
    """Readiness: database and Redis. Reports ``degraded`` instead of failing."""
    checks = {"db": check_database(), "redis": check_redis()}
    healthy = all(value == "connected" for value in checks.values())
    return {"status": "ok" if healthy else "degraded", **checks}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "printbroker.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
