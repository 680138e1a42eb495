"""Dialect-aware INSERT ... ON CONFLICT helpers."""

from typing import Any, Dict, List, Optional

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

_INSERT_FUNCTIONS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def supports_upsert(db: Session) -> bool:
    return db.get_bind().dialect.name in _INSERT_FUNCTIONS


def upsert_statement(
    db: Session,
    table: Table,
    values: Dict[str, Any],
    index_elements: List[Any],
    set_: Dict[str, Any],
    returning: Optional[List[Any]] = None,
):
    """
    Build ``INSERT ... ON CONFLICT (index_elements) DO UPDATE SET ...``.

    Args:
        db: Session whose bind decides the dialect
        table: Target table
        values: Row to insert
        index_elements: Conflict target columns
        set_: Assignments applied to the existing row on conflict
        returning: Columns to return

    Returns:
        The statement, or None when the dialect has no native upsert
    """
    insert_fn = _INSERT_FUNCTIONS.get(db.get_bind().dialect.name)
    if insert_fn is None:
        return None
    stmt = insert_fn(table).values(**values).on_conflict_do_update(index_elements=index_elements, set_=set_)
    if returning:
        stmt = stmt.returning(*returning)
    return stmt
