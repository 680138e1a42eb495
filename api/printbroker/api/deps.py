"""API dependencies."""

from typing import Generator, Optional

from fastapi import Header
from sqlalchemy.orm import Session

from printbroker.database import SessionLocal
from printbroker.services.notice_sender import BaseNoticeSender
from printbroker.services.notice_sender import get_notice_sender as build_notice_sender


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor(x_actor: Optional[str] = Header(None)) -> Optional[str]:
    """Who is making the change, recorded in the audit log."""
    return x_actor.strip() if x_actor and x_actor.strip() else None


def get_notice_sender() -> BaseNoticeSender:
    """Invoice notice sender selected by configuration."""
    return build_notice_sender()
