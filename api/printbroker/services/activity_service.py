"""Job audit log."""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from printbroker.models.job import Job
from printbroker.models.job_activity import JobActivity
from printbroker.services.pricing_service import round_money

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


def normalize_value(value: Any) -> Optional[str]:
    """Render a value the way it is stored in the audit log."""
    if value is None:
        return None
    if isinstance(value, (Decimal, float)):
        return str(round_money(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def record_change(
    db: Session,
    job: Job,
    action: str,
    field: Optional[str],
    old_value: Any,
    new_value: Any,
    changed_by: Optional[str] = None,
) -> Optional[JobActivity]:
    """
    Add an audit entry for one field change.

    Writes nothing when old and new values are equal after normalization.

    Returns:
        The new JobActivity, or None when suppressed
    """
    old_text = normalize_value(old_value)
    new_text = normalize_value(new_value)
    if old_text == new_text:
        logger.debug(f"Skipping no-op {action} on job {job.job_no} field={field}")
        return None

    activity = JobActivity(
        job_id=job.id,
        action=action,
        field=field,
        old_value=old_text,
        new_value=new_text,
        changed_by=changed_by or SYSTEM_ACTOR,
    )
    db.add(activity)
    return activity


def list_activities(db: Session, job_id: str, limit: int = 100) -> List[JobActivity]:
    """Most recent audit entries for a job, newest first."""
    return (
        db.query(JobActivity)
        .filter(JobActivity.job_id == job_id)
        .order_by(JobActivity.created_at.desc())
        .limit(limit)
        .all()
    )
