"""Job reads and updates."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from printbroker.config import settings
from printbroker.constants import ActivityAction
from printbroker.db.transaction import unit_of_work
from printbroker.models.company import Vendor
from printbroker.models.job import Job
from printbroker.schemas.job import JobDetailResponse, JobResponse, JobUpdateRequest
from printbroker.services.activity_service import record_change
from printbroker.services.errors import InvalidInputError, JobNotFoundError
from printbroker.services.job_creation_service import (
    generate_cost_orders,
    reprice_cost_orders,
    validate_pathway_fields,
)
from printbroker.services.pathway_service import refresh_vendor_count
from printbroker.services.pricing_service import (
    calculate_cost_breakdown,
    calculate_job_tier_pricing,
    calculate_profit_split,
)
from printbroker.services.profit_split_service import refresh_profit_split
from printbroker.services.serializers import job_detail_response, job_response

logger = logging.getLogger(__name__)

# Changes to these re-run cost order generation and the profit split
PRICING_FIELDS = ("quantity", "sell_price", "size_name", "paper_source", "print_cpm")
AUDITED_FIELDS = PRICING_FIELDS + ("status", "vendor_id", "title")
NOT_NULL_FIELDS = ("title", "status", "quantity", "sell_price", "paper_source")


def get_job_by_id(db: Session, job_id: str) -> Job:
    """
    Get job by ID.

    Args:
        db: Database session
        job_id: Job ID

    Returns:
        Job instance

    Raises:
        JobNotFoundError: If job not found
    """
    job = db.query(Job).filter(Job.id == job_id).first()

    if not job:
        raise JobNotFoundError(f"Job {job_id} not found")

    return job


def list_jobs(
    db: Session,
    page: int = 1,
    size: int = 20,
    status_filter: Optional[str] = None,
    pathway_filter: Optional[str] = None,
    customer_id: Optional[str] = None,
) -> Tuple[List[JobResponse], int]:
    """
    List jobs with pagination, newest first.

    Args:
        db: Database session
        page: Page number (1-indexed)
        size: Page size
        status_filter: Optional status filter
        pathway_filter: Optional pathway filter
        customer_id: Optional customer filter

    Returns:
        Tuple of (jobs, total_count)
    """
    query = db.query(Job)

    if status_filter:
        query = query.filter(Job.status == status_filter)
    if pathway_filter:
        query = query.filter(Job.pathway == pathway_filter)
    if customer_id:
        query = query.filter(Job.customer_id == customer_id)

    total = query.count()
    jobs = query.order_by(Job.created_at.desc(), Job.job_no.desc()).offset((page - 1) * size).limit(size).all()

    return [job_response(job) for job in jobs], total


def get_job_detail(db: Session, job_id: str) -> JobDetailResponse:
    """
    Full job snapshot with pricing, profit split and payments.

    The profit split is computed from the current inputs rather than read
    from the cache.

    Raises:
        JobNotFoundError: If job not found
        DataIntegrityError: If a post-cutover job lacks its base job id or pathway
    """
    job = get_job_by_id(db, job_id)
    validate_pathway_fields(job)

    breakdown = calculate_cost_breakdown(job.purchase_orders)
    profit_split = calculate_profit_split(job.sell_price, breakdown.total_cost, breakdown.paper_markup)
    tiers = calculate_job_tier_pricing(job)

    return job_detail_response(job, tiers, profit_split, breakdown)


def apply_job_changes(
    db: Session,
    job: Job,
    changes: Dict[str, Any],
    changed_by: Optional[str] = None,
    action: str = ActivityAction.JOB_UPDATED,
) -> None:
    """
    Apply field changes to a locked job inside the caller's transaction.

    Shared by the update API and the portal webhook so both audit the same
    fields and keep cost orders, vendor count and the profit split in step.
    When a pricing input changes, missing partner cost orders are generated
    and existing generated ones are repriced before the split is refreshed.

    Args:
        db: Database session
        job: Job row, already locked by the caller
        changes: Field name to new value
        changed_by: Actor recorded on the audit entries
        action: Audit action for the per-field entries

    Raises:
        InvalidInputError: If the new vendor does not exist
    """
    if changes.get("vendor_id") and db.get(Vendor, changes["vendor_id"]) is None:
        raise InvalidInputError(f"Vendor {changes['vendor_id']} not found", {"field": "vendor_id"})

    for field, value in changes.items():
        if field in NOT_NULL_FIELDS and value is None:
            continue
        old_value = getattr(job, field)
        setattr(job, field, value)
        if field in AUDITED_FIELDS:
            record_change(db, job, action, field, old_value, value, changed_by)

    if "vendor_id" in changes:
        refresh_vendor_count(job)

    if any(field in changes for field in PRICING_FIELDS):
        db.flush()
        created, _ = generate_cost_orders(db, job)
        if not created:
            reprice_cost_orders(db, job, changed_by)
        refresh_profit_split(db, job)


def update_job(
    db: Session,
    job_id: str,
    data: JobUpdateRequest,
    changed_by: Optional[str] = None,
) -> Job:
    """
    Partially update a job.

    Identifiers and pathway never change here.

    Raises:
        JobNotFoundError: If job not found
        InvalidInputError: If the new vendor does not exist
    """
    changes = data.model_dump(exclude_unset=True)

    with unit_of_work(
        db,
        max_wait_seconds=settings.job_tx_max_wait_seconds,
        timeout_seconds=settings.job_tx_timeout_seconds,
        label="update_job",
    ):
        job = db.query(Job).filter(Job.id == job_id).with_for_update().populate_existing().first()
        if not job:
            raise JobNotFoundError(f"Job {job_id} not found")
        apply_job_changes(db, job, changes, changed_by)

    logger.info(f"Updated job {job.job_no}: {', '.join(sorted(changes)) or 'no changes'}")
    return job
