"""Purchase order writes. Every change refreshes vendor count and the profit split."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from printbroker.config import settings
from printbroker.constants import ActivityAction
from printbroker.db.transaction import unit_of_work
from printbroker.models.company import Vendor
from printbroker.models.job import Job
from printbroker.models.purchase_order import PurchaseOrder
from printbroker.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderUpdate
from printbroker.services.activity_service import record_change
from printbroker.services.errors import InvalidInputError, JobNotFoundError
from printbroker.services.pathway_service import refresh_vendor_count
from printbroker.services.profit_split_service import refresh_profit_split
from printbroker.services.sequence_service import generate_execution_id, parse_execution_id

logger = logging.getLogger(__name__)

COST_FIELDS = ("buy_cost", "paper_cost", "paper_markup", "mfg_cost")


class PurchaseOrderNotFoundError(JobNotFoundError):
    """Purchase order not found on the job."""


def _po_tx(db: Session, label: str):
    return unit_of_work(
        db,
        max_wait_seconds=settings.job_tx_max_wait_seconds,
        timeout_seconds=settings.job_tx_timeout_seconds,
        label=label,
    )


def _lock_job(db: Session, job_id: str) -> Job:
    job = db.query(Job).filter(Job.id == job_id).with_for_update().populate_existing().first()
    if not job:
        raise JobNotFoundError(f"Job {job_id} not found")
    return job


def _find_po(job: Job, po_id: str) -> PurchaseOrder:
    for po in job.purchase_orders:
        if po.id == po_id:
            return po
    raise PurchaseOrderNotFoundError(f"Purchase order {po_id} not found on job {job.job_no}")


def _get_vendor(db: Session, vendor_id: str) -> Vendor:
    vendor = db.get(Vendor, vendor_id)
    if vendor is None:
        raise InvalidInputError(f"Vendor {vendor_id} not found", {"field": "target_vendor_id"})
    return vendor


def _generate_po_number(job: Job, vendor: Optional[Vendor]) -> str:
    """
    Vendor POs get an execution id ({BASE}-{VENDOR_CODE}.{N}); others PO-{JOB_NO}-{N}.

    N counts up from the POs already on the job until the number is unused.
    """
    taken = {po.po_number for po in job.purchase_orders}
    if vendor is not None and vendor.vendor_code and job.base_job_id:
        n = sum(1 for po in job.purchase_orders if po.target_vendor_id == vendor.id) + 1
        while generate_execution_id(job.base_job_id, vendor.vendor_code, n) in taken:
            n += 1
        return generate_execution_id(job.base_job_id, vendor.vendor_code, n)

    n = len(job.purchase_orders) + 1
    while f"PO-{job.job_no}-{n}" in taken:
        n += 1
    return f"PO-{job.job_no}-{n}"


def _after_change(db: Session, job: Job) -> None:
    db.flush()
    refresh_vendor_count(job)
    refresh_profit_split(db, job)


def list_purchase_orders(db: Session, job_id: str) -> List[PurchaseOrder]:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise JobNotFoundError(f"Job {job_id} not found")
    return list(job.purchase_orders)


def create_purchase_order(
    db: Session,
    job_id: str,
    data: PurchaseOrderCreate,
    changed_by: Optional[str] = None,
) -> PurchaseOrder:
    """
    Add a purchase order to a job.

    Args:
        db: Database session
        job_id: Job ID
        data: PO fields
        changed_by: Actor for the audit log

    Returns:
        Created purchase order

    Raises:
        JobNotFoundError: If job not found
        InvalidInputError: If the target vendor does not exist
    """
    with _po_tx(db, "create_purchase_order"):
        job = _lock_job(db, job_id)
        vendor = _get_vendor(db, data.target_vendor_id) if data.target_vendor_id else None

        fields = data.model_dump(exclude={"po_number"})
        po = PurchaseOrder(po_number=data.po_number or _generate_po_number(job, vendor), **fields)
        job.purchase_orders.append(po)
        _after_change(db, job)
        record_change(db, job, ActivityAction.PO_CREATED, "purchase_order", None, po.po_number, changed_by)

    logger.info(f"Created PO {po.po_number} on job {job.job_no} ({po.origin_company_id} -> "
                f"{po.target_company_id or po.target_vendor_id}, buy_cost={po.buy_cost})")
    return po


def update_purchase_order(
    db: Session,
    job_id: str,
    po_id: str,
    data: PurchaseOrderUpdate,
    changed_by: Optional[str] = None,
) -> PurchaseOrder:
    """
    Update a purchase order's costs, status or vendor.

    Raises:
        JobNotFoundError: If the job or PO is not found
        InvalidInputError: If the new target vendor does not exist, or the
            PO already carries an execution id for its current vendor
    """
    changes = data.model_dump(exclude_unset=True)

    with _po_tx(db, "update_purchase_order"):
        job = _lock_job(db, job_id)
        po = _find_po(job, po_id)
        new_vendor_id = changes.get("target_vendor_id")
        if "target_vendor_id" in changes and new_vendor_id != po.target_vendor_id and parse_execution_id(po.po_number):
            # the execution id encodes the vendor code
            raise InvalidInputError(
                "Cannot change vendor on a purchase order with an execution id",
                {"field": "target_vendor_id", "existing_execution_id": po.po_number},
            )
        if new_vendor_id:
            _get_vendor(db, new_vendor_id)

        for field, value in changes.items():
            old_value = getattr(po, field)
            setattr(po, field, value)
            if field in COST_FIELDS:
                record_change(
                    db, job, ActivityAction.PO_UPDATED, f"{po.po_number}.{field}", old_value, value, changed_by
                )
        _after_change(db, job)

    logger.info(f"Updated PO {po.po_number} on job {job.job_no}: {', '.join(sorted(changes)) or 'no changes'}")
    return po


def delete_purchase_order(
    db: Session,
    job_id: str,
    po_id: str,
    changed_by: Optional[str] = None,
) -> None:
    """
    Remove a purchase order from a job.

    Raises:
        JobNotFoundError: If the job or PO is not found
    """
    with _po_tx(db, "delete_purchase_order"):
        job = _lock_job(db, job_id)
        po = _find_po(job, po_id)
        po_number = po.po_number

        job.purchase_orders.remove(po)
        _after_change(db, job)
        record_change(db, job, ActivityAction.PO_DELETED, "purchase_order", po_number, None, changed_by)

    logger.info(f"Deleted PO {po_number} from job {job.job_no}")
