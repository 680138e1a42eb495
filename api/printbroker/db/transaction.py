"""Bounded units of work over a SQLAlchemy session."""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from printbroker.services.errors import TransientStoreError

logger = logging.getLogger(__name__)


def _apply_postgres_timeouts(db: Session, max_wait_seconds: float, timeout_seconds: float) -> None:
    # SET LOCAL only lasts until the end of the current transaction
    db.execute(text(f"SET LOCAL lock_timeout = {int(max_wait_seconds * 1000)}"))
    db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_seconds * 1000)}"))


@contextmanager
def unit_of_work(
    db: Session,
    *,
    max_wait_seconds: float,
    timeout_seconds: float,
    label: str = "transaction",
) -> Iterator[Session]:
    """
    Run a block as one atomic transaction with bounded waits.

    Lock acquisition is bounded by ``max_wait_seconds`` and execution by
    ``timeout_seconds``. On PostgreSQL both are pushed to the server with
    ``SET LOCAL``; on every backend the elapsed time is checked again before
    commit. Any failure rolls back everything done inside the block.

    Args:
        db: Database session (must not hold uncommitted work from elsewhere)
        max_wait_seconds: Maximum time to wait for locks/connections
        timeout_seconds: Maximum execution time for the whole block
        label: Name used in log messages

    Yields:
        The same session

    Raises:
        TransientStoreError: On lock/statement timeout, contention or deadline
    """
    started = time.monotonic()
    try:
        if db.get_bind().dialect.name == "postgresql":
            _apply_postgres_timeouts(db, max_wait_seconds, timeout_seconds)
        yield db
        elapsed = time.monotonic() - started
        if elapsed > timeout_seconds:
            raise TransientStoreError(
                f"{label} exceeded {timeout_seconds}s (took {elapsed:.1f}s); nothing was committed",
                {"retryable": True},
            )
        db.commit()
    except (OperationalError, PoolTimeoutError) as e:
        db.rollback()
        logger.warning(f"{label} aborted by store: {e}")
        raise TransientStoreError(
            f"{label} could not complete; retry the whole request",
            {"retryable": True},
        ) from e
    except Exception:
        db.rollback()
        raise
