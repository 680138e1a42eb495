"""Database engine, session factory and declarative base."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from printbroker.config import settings

Base = declarative_base()


def build_engine(url: str) -> Engine:
    """
    Create an engine for the given URL.

    PostgreSQL engines get a bounded pool so that a request waiting for a
    connection gives up after ``db_pool_timeout_seconds``.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        pool_timeout=settings.db_pool_timeout_seconds,
        pool_pre_ping=True,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
