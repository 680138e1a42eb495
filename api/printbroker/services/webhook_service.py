"""Ordering portal webhook: create or update a job keyed by its external id."""

import hmac
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from printbroker.config import settings
from printbroker.constants import ActivityAction, JobSource, JobStatus, PaperSource
from printbroker.db.transaction import unit_of_work
from printbroker.models.company import Company
from printbroker.models.job import Job
from printbroker.schemas.job import JobCreateRequest
from printbroker.schemas.webhook import PortalJobPayload
from printbroker.services.activity_service import record_change
from printbroker.services.errors import InvalidInputError, TransientStoreError
from printbroker.services.job_creation_service import create_job_in_transaction
from printbroker.services.job_service import apply_job_changes
from printbroker.services.pricing_service import round_money

logger = logging.getLogger(__name__)

EXTERNAL_SOURCE = "ordering-portal"
WEBHOOK_ACTOR = f"webhook:{EXTERNAL_SOURCE}"

STATUS_MAP = {
    "COMPLETED": JobStatus.PAID,
    "PAID": JobStatus.PAID,
    "CANCELLED": JobStatus.CANCELLED,
}

# Portal names first, then our own
PAPER_SOURCE_MAP = {
    "BRADFORD": PaperSource.SELF_SUPPLIED,
    "PARTNER": PaperSource.SELF_SUPPLIED,
    "VENDOR": PaperSource.VENDOR_SUPPLIED,
    "CUSTOMER": PaperSource.CUSTOMER_SUPPLIED,
    PaperSource.SELF_SUPPLIED: PaperSource.SELF_SUPPLIED,
    PaperSource.VENDOR_SUPPLIED: PaperSource.VENDOR_SUPPLIED,
    PaperSource.CUSTOMER_SUPPLIED: PaperSource.CUSTOMER_SUPPLIED,
}


@dataclass
class WebhookResult:
    job: Job
    created: bool

    @property
    def action(self) -> str:
        return "created" if self.created else "updated"


def webhook_configured() -> bool:
    return bool(settings.portal_webhook_secret)


def verify_webhook_secret(provided: Optional[str]) -> bool:
    """Constant-time check of the shared secret. Rejects everything when unset."""
    expected = settings.portal_webhook_secret
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def map_status(portal_status: Optional[str]) -> str:
    if not portal_status:
        return JobStatus.ACTIVE
    return STATUS_MAP.get(portal_status.strip().upper(), JobStatus.ACTIVE)


def map_paper_source(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return PAPER_SOURCE_MAP.get(value.strip().upper())


def _parse_timestamp(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidInputError(f"Invalid {field}: {value}", {"field": field})
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_date(value: Optional[str], field: str) -> Optional[date]:
    parsed = _parse_timestamp(value, field)
    return parsed.date() if parsed else None


def find_or_create_customer(db: Session, name: str, company_id: Optional[str] = None) -> Company:
    """Match a customer by case-insensitive name, creating it when absent."""
    company = (
        db.query(Company)
        .filter(func.lower(Company.name) == name.strip().lower(), Company.type == "CUSTOMER")
        .first()
    )
    if company:
        return company

    company = Company(name=name.strip(), type="CUSTOMER")
    if company_id and db.get(Company, company_id) is None:
        company.id = company_id
    db.add(company)
    db.flush()
    logger.info(f"Created customer company {company.name} ({company.id}) from portal webhook")
    return company


def _portal_fields(payload: PortalJobPayload, customer: Company) -> dict:
    specs = payload.specs.model_dump(exclude_none=True) if payload.specs else {}
    specs["externalJobNo"] = payload.jobNo

    fields = {
        "customer_id": customer.id,
        "title": payload.title or f"Job from {payload.companyName}",
        "customer_po_number": payload.customerPONumber or payload.jobNo,
        "size_name": payload.sizeName,
        "quantity": payload.quantity or 0,
        "specs": specs,
        "status": map_status(payload.status),
        "due_date": _parse_date(payload.deliveryDate, "deliveryDate"),
    }
    if payload.specs and payload.specs.sellPrice is not None:
        fields["sell_price"] = round_money(Decimal(str(payload.specs.sellPrice)))
    paper_source = map_paper_source(payload.specs.paperSource if payload.specs else None)
    if paper_source:
        fields["paper_source"] = paper_source
    return fields


def _creation_request(fields: dict) -> JobCreateRequest:
    try:
        return JobCreateRequest(**fields)
    except ValidationError as e:
        messages = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise InvalidInputError(f"Portal job cannot be created: {messages[0]}", {"errors": messages})


def _update_existing(db: Session, job: Job, fields: dict) -> None:
    apply_job_changes(db, job, fields, changed_by=WEBHOOK_ACTOR, action=ActivityAction.WEBHOOK_UPDATE)


def process_portal_job(db: Session, payload: PortalJobPayload) -> WebhookResult:
    """
    Create or update the job linked to ``payload.externalJobId``.

    An existing job keeps its job number, base job id and pathway; a new one
    goes through normal job creation with source WEBHOOK.

    Raises:
        InvalidInputError: If a date cannot be parsed
        TransientStoreError: On contention, including a concurrent create of
            the same external id; retrying turns into an update
    """
    try:
        with unit_of_work(
            db,
            max_wait_seconds=settings.job_tx_max_wait_seconds,
            timeout_seconds=settings.job_tx_timeout_seconds,
            label="portal_webhook",
        ):
            customer = find_or_create_customer(db, payload.companyName, payload.companyId)
            fields = _portal_fields(payload, customer)

            job = (
                db.query(Job)
                .filter(Job.external_job_id == payload.externalJobId)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if job:
                _update_existing(db, job, fields)
                created = False
            else:
                result = create_job_in_transaction(
                    db,
                    _creation_request(fields),
                    source=JobSource.WEBHOOK,
                    external_job_id=payload.externalJobId,
                    external_source=EXTERNAL_SOURCE,
                    created_at=_parse_timestamp(payload.createdAt, "createdAt"),
                )
                job = result.job
                record_change(
                    db, job, ActivityAction.WEBHOOK_CREATE, "external_job_id", None, payload.externalJobId,
                    WEBHOOK_ACTOR,
                )
                created = True
    except IntegrityError as e:
        logger.warning(f"Concurrent webhook for external job {payload.externalJobId}: {e.orig}")
        raise TransientStoreError(
            f"External job {payload.externalJobId} was written concurrently; retry the request",
            {"retryable": True},
        ) from e

    logger.info(
        f"{'Created' if created else 'Updated'} job {job.job_no} from portal job {payload.jobNo} "
        f"(external id {payload.externalJobId})"
    )
    return WebhookResult(job=job, created=created)
