"""
Job creation.

Every creation path (API, batch import, portal webhook) goes through
``create_job_in_transaction`` so that each job gets, in one transaction:

1. a job number (J-XXXX) from the job sequence
2. a base job id (TYPE_CODE-SEQ) from the master sequence
3. a pathway (P1/P2/P3) fixed for the life of the job
4. its components, partner cost orders when they can be priced, and a
   fresh profit split

Nothing is committed unless all of it succeeds.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from printbroker.config import settings
from printbroker.constants import ActivityAction, CompanyIds, JobSource, PaperSource, RoutingType
from printbroker.db.transaction import unit_of_work
from printbroker.models.company import Company, Vendor
from printbroker.models.job import Job
from printbroker.models.job_component import JobComponent
from printbroker.models.purchase_order import PurchaseOrder
from printbroker.schemas.job import JobCreateRequest
from printbroker.services.activity_service import record_change
from printbroker.services.errors import DataIntegrityError, InvalidInputError
from printbroker.services.pathway_service import VendorSignals, classify
from printbroker.services.pricing_service import calculate_job_tier_pricing, to_decimal
from printbroker.services.pricing_table import get_size_pricing
from printbroker.services.profit_split_service import refresh_profit_split
from printbroker.services.sequence_service import allocate_base_job_id, next_job_number

logger = logging.getLogger(__name__)


@dataclass
class JobCreationResult:
    job: Job
    job_no: str
    base_job_id: str
    pathway: str
    cost_orders_created: bool = False
    cost_orders_skipped_reason: Optional[str] = None


def can_generate_cost_order(quantity, size_name, sell_price) -> Tuple[bool, Optional[str]]:
    """
    Check whether partner cost orders can be priced for a job.

    Returns:
        Tuple of (is_valid, reason); reason is None when valid
    """
    if not quantity or quantity <= 0:
        return False, "Missing or invalid quantity"
    if not size_name or get_size_pricing(size_name) is None:
        return False, "Invalid or missing standard size"
    if sell_price is None or to_decimal(sell_price) <= 0:
        return False, "Missing or invalid sell price"
    return True, None


def requires_pathway_fields(created_at: Optional[datetime]) -> bool:
    """Jobs created on or after the cutover must carry a base job id and pathway."""
    return created_at is not None and created_at >= settings.pathway_cutover_date


def validate_pathway_fields(job: Job) -> None:
    """
    Raise if a post-cutover job is missing its base job id or pathway.

    Raises:
        DataIntegrityError: The job must be repaired by hand
    """
    if not requires_pathway_fields(job.created_at):
        return
    missing = [name for name in ("base_job_id", "pathway") if not getattr(job, name)]
    if missing:
        logger.error(
            f"Job {job.job_no} ({job.id}) created {job.created_at.isoformat()} is missing "
            f"{', '.join(missing)}"
        )
        raise DataIntegrityError(
            f"Job {job.job_no} was created after the pathway cutover but has no {' or '.join(missing)}",
            {"job_id": job.id, "missing": missing},
        )


def _next_po_number(job: Job, suffix: str) -> str:
    return f"PO-{job.job_no}-{suffix}"


def generate_cost_orders(db: Session, job: Job) -> Tuple[bool, Optional[str]]:
    """
    Create the partner-route purchase orders for a job when they are missing.

    broker -> partner:       buy cost = Tier 2 total, paper cost and markup from the tiers
    partner -> manufacturer: buy/mfg cost = Tier 1 print total

    Args:
        db: Database session
        job: Job on the partner route

    Returns:
        Tuple of (created, skipped_reason)
    """
    if job.routing_type != RoutingType.PARTNER_INTERMEDIARY:
        return False, "Job is not routed through the partner"

    valid, reason = can_generate_cost_order(job.quantity, job.size_name, job.sell_price)
    if not valid:
        logger.info(f"Skipping cost orders for job {job.job_no}: {reason}")
        return False, reason

    existing = [
        po for po in job.purchase_orders
        if po.origin_company_id == CompanyIds.BROKER and po.target_company_id == CompanyIds.PARTNER
    ]
    if existing:
        return False, "Cost orders already exist"

    tiers = calculate_job_tier_pricing(job)
    paper_cost = tiers.tier1.paper_total if job.paper_source != PaperSource.CUSTOMER_SUPPLIED else 0

    job.purchase_orders.append(PurchaseOrder(
        po_number=_next_po_number(job, "BP"),
        origin_company_id=CompanyIds.BROKER,
        target_company_id=CompanyIds.PARTNER,
        description=f"{tiers.size_name} x {job.quantity:,}",
        buy_cost=tiers.tier2.total_cost,
        paper_cost=paper_cost,
        paper_markup=tiers.tier2.paper_markup,
        print_cpm=tiers.tier2.print_cpm,
        paper_cpm=tiers.tier2.paper_cpm,
    ))
    job.purchase_orders.append(PurchaseOrder(
        po_number=_next_po_number(job, "PM"),
        origin_company_id=CompanyIds.PARTNER,
        target_company_id=CompanyIds.MANUFACTURER,
        description=f"Print {tiers.size_name} x {job.quantity:,}",
        buy_cost=tiers.tier1.print_total,
        mfg_cost=tiers.tier1.print_total,
        print_cpm=tiers.tier1.print_cpm,
    ))
    db.flush()

    logger.info(
        f"Created cost orders for job {job.job_no}: partner {tiers.tier2.total_cost}, "
        f"manufacturer {tiers.tier1.print_total}"
    )
    return True, None


def reprice_cost_orders(db: Session, job: Job, changed_by: Optional[str] = None) -> List[PurchaseOrder]:
    """
    Bring the generated partner-route purchase orders in line with the job.

    Only the ``PO-{job_no}-BP`` and ``PO-{job_no}-PM`` orders created by
    ``generate_cost_orders`` are touched; orders added by hand keep their
    costs. Each cost field that moves gets a PO_UPDATED audit entry.

    Args:
        db: Database session
        job: Job whose quantity, size or paper source changed
        changed_by: Actor recorded on the audit entries

    Returns:
        The purchase orders whose costs changed
    """
    if job.routing_type != RoutingType.PARTNER_INTERMEDIARY:
        return []

    valid, reason = can_generate_cost_order(job.quantity, job.size_name, job.sell_price)
    if not valid:
        logger.warning(f"Cost orders for job {job.job_no} left unchanged: {reason}")
        return []

    tiers = calculate_job_tier_pricing(job)
    paper_cost = tiers.tier1.paper_total if job.paper_source != PaperSource.CUSTOMER_SUPPLIED else to_decimal(0)
    targets = {
        _next_po_number(job, "BP"): {
            "buy_cost": tiers.tier2.total_cost,
            "paper_cost": paper_cost,
            "paper_markup": tiers.tier2.paper_markup,
            "print_cpm": tiers.tier2.print_cpm,
            "paper_cpm": tiers.tier2.paper_cpm,
            "description": f"{tiers.size_name} x {job.quantity:,}",
        },
        _next_po_number(job, "PM"): {
            "buy_cost": tiers.tier1.print_total,
            "mfg_cost": tiers.tier1.print_total,
            "print_cpm": tiers.tier1.print_cpm,
            "description": f"Print {tiers.size_name} x {job.quantity:,}",
        },
    }

    changed = []
    for po in job.purchase_orders:
        values = targets.get(po.po_number)
        if values is None:
            continue
        moved = False
        for field, value in values.items():
            old_value = getattr(po, field)
            setattr(po, field, value)
            if field == "description":
                continue
            field_name = f"{po.po_number}.{field}"
            if record_change(db, job, ActivityAction.PO_UPDATED, field_name, old_value, value, changed_by):
                moved = True
        if moved:
            changed.append(po)

    if changed:
        db.flush()
        logger.info(
            f"Repriced cost orders for job {job.job_no}: partner {tiers.tier2.total_cost}, "
            f"manufacturer {tiers.tier1.print_total}"
        )
    return changed


def _check_references(db: Session, data: JobCreateRequest) -> None:
    if db.get(Company, data.customer_id) is None:
        raise InvalidInputError(f"Customer {data.customer_id} not found", {"field": "customer_id"})
    if data.vendor_id and db.get(Vendor, data.vendor_id) is None:
        raise InvalidInputError(f"Vendor {data.vendor_id} not found", {"field": "vendor_id"})
    for component in data.components:
        if component.vendor_id and db.get(Vendor, component.vendor_id) is None:
            raise InvalidInputError(
                f"Vendor {component.vendor_id} for component '{component.name}' not found",
                {"field": "components"},
            )


def create_job_in_transaction(
    db: Session,
    data: JobCreateRequest,
    source: str = JobSource.MANUAL,
    external_job_id: Optional[str] = None,
    external_source: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> JobCreationResult:
    """
    Create one job inside the caller's transaction.

    Does not commit; use ``create_job`` or ``create_jobs_batch`` unless the
    caller already owns a unit of work.

    Raises:
        InvalidInputError: If the customer or a vendor does not exist
    """
    _check_references(db, data)

    job_no = next_job_number(db)
    base = allocate_base_job_id(
        db,
        job_meta_type=data.job_meta_type,
        mail_format=data.mail_format,
        envelope_components=data.envelope_components,
        job_type=data.job_type,
    )

    routing_type = data.routing_type or RoutingType.DEFAULT
    classification = classify(
        routing_type,
        VendorSignals.from_records(components=data.components, vendor_id=data.vendor_id),
    )

    job = Job(
        job_no=job_no,
        base_job_id=base.base_job_id,
        master_seq=base.master_seq,
        job_type_code=base.type_code,
        pathway=classification.pathway,
        routing_type=routing_type,
        vendor_count=classification.vendor_count,
        job_meta_type=data.job_meta_type,
        mail_format=data.mail_format,
        envelope_components=data.envelope_components,
        job_type=data.job_type,
        title=data.title,
        customer_id=data.customer_id,
        vendor_id=data.vendor_id,
        status=data.status,
        source=source,
        quantity=data.quantity,
        sell_price=data.sell_price,
        size_name=data.size_name,
        paper_source=data.paper_source or PaperSource.DEFAULT,
        print_cpm=data.print_cpm,
        specs=data.specs or {},
        notes=data.notes,
        customer_po_number=data.customer_po_number,
        partner_po_number=data.partner_po_number,
        due_date=data.due_date,
        mail_date=data.mail_date,
        in_homes_date=data.in_homes_date,
        external_job_id=external_job_id,
        external_source=external_source,
    )
    if created_at is not None:
        job.created_at = created_at

    for index, component in enumerate(data.components):
        job.components.append(JobComponent(
            name=component.name,
            specs=component.specs or {},
            sort_order=component.sort_order if component.sort_order is not None else index,
            owner=component.owner,
            vendor_id=component.vendor_id,
        ))

    db.add(job)
    db.flush()

    created, skipped_reason = generate_cost_orders(db, job)
    refresh_profit_split(db, job)

    logger.info(
        f"Created job {job_no} base={base.base_job_id} pathway={classification.pathway} "
        f"vendors={classification.vendor_count} source={source}"
    )
    return JobCreationResult(
        job=job,
        job_no=job_no,
        base_job_id=base.base_job_id,
        pathway=classification.pathway,
        cost_orders_created=created,
        cost_orders_skipped_reason=skipped_reason,
    )


def create_job(db: Session, data: JobCreateRequest, source: str = JobSource.MANUAL) -> JobCreationResult:
    """
    Create a job in its own bounded transaction.

    Args:
        db: Database session
        data: Validated creation request
        source: Channel the job came from

    Returns:
        JobCreationResult for the committed job

    Raises:
        InvalidInputError: If referenced records do not exist
        TransientStoreError: On timeout or contention; nothing was committed
    """
    with unit_of_work(
        db,
        max_wait_seconds=settings.job_tx_max_wait_seconds,
        timeout_seconds=settings.job_tx_timeout_seconds,
        label="create_job",
    ):
        result = create_job_in_transaction(db, data, source=source)
    return result


def create_jobs_batch(
    db: Session,
    items: List[JobCreateRequest],
    source: str = JobSource.IMPORT,
) -> List[JobCreationResult]:
    """
    Create several jobs in one transaction.

    Job numbers and base sequences are contiguous within the batch; if any
    item fails, no job from the batch is kept.
    """
    with unit_of_work(
        db,
        max_wait_seconds=settings.batch_tx_max_wait_seconds,
        timeout_seconds=settings.batch_tx_timeout_seconds,
        label="create_jobs_batch",
    ):
        results = [create_job_in_transaction(db, item, source=source) for item in items]

    if not results:
        logger.info("Batch creation called with no jobs; nothing created")
        return results
    logger.info(f"Created batch of {len(results)} jobs ({results[0].job_no}..{results[-1].job_no})")
    return results
