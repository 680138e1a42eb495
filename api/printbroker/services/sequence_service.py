"""
Sequence allocation and job identifiers.

Identifiers:
- Job number: ``J-{n:04d}`` from the ``job-seq`` counter (J-1001, J-1002, ...)
- Base job id: ``{TYPE_CODE}-{MASTER_SEQ}`` from the ``master-seq`` counter
  (ME2-3001, FJ-3002, ...), stored on the job
- Execution id: ``{BASE_JOB_ID}-{VENDOR_CODE}.{VENDOR_COUNT}``, stored on POs
- Change order id: ``{BASE_JOB_ID}-CO{N}``

Type codes:
- MS: self-mailer, MP: postcard mailing, ME{N}: envelope mailing with N components
- FJ: flat, HJ: folded, BJ: booklet; FJ is the default
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from printbroker.config import settings
from printbroker.constants import JobMetaType, JobType, MailFormat
from printbroker.db.upsert import upsert_statement
from printbroker.models.global_sequence import GlobalSequence
from printbroker.services.errors import DataIntegrityError

logger = logging.getLogger(__name__)

JOB_NUMBER_SEQUENCE = "job-seq"
MASTER_SEQUENCE = "master-seq"

DEFAULT_TYPE_CODE = "FJ"
MAILING_DEFAULT_TYPE_CODE = "MS"

MAIL_FORMAT_TYPE_CODES = MappingProxyType({
    MailFormat.SELF_MAILER: "MS",
    MailFormat.POSTCARD: "MP",
    MailFormat.ENVELOPE: "ME",  # component count appended
})

JOB_TYPE_CODES = MappingProxyType({
    JobType.FLAT: "FJ",
    JobType.FOLDED: "HJ",
    JobType.BOOKLET_SELF_COVER: "BJ",
    JobType.BOOKLET_PLUS_COVER: "BJ",
})

_BASE_JOB_ID_RE = re.compile(r"^([A-Z]+\d*)-(\d+)$")
_EXECUTION_ID_RE = re.compile(r"^([A-Z]+\d*-\d+)-(\w+)\.(\d+)$")
_CHANGE_ORDER_ID_RE = re.compile(r"^([A-Z]+\d*-\d+)-CO(\d+)$")


@dataclass(frozen=True)
class BaseJobId:
    """Allocated base identifier."""

    base_job_id: str
    master_seq: int
    type_code: str


def next_sequence_value(db: Session, name: str, first_value: int) -> int:
    """
    Atomically increment a named counter and return the new value.

    A single ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING`` statement
    either creates the counter at ``first_value`` or increments it. The row
    stays locked until the caller's transaction ends, so concurrent callers
    never see the same value; rolling back undoes the increment.

    Args:
        db: Database session (the caller owns the transaction)
        name: Counter name
        first_value: Value returned the very first time the counter is used

    Returns:
        The newly issued value

    Raises:
        DataIntegrityError: If the counter row is missing on a backend without upsert
    """
    table = GlobalSequence.__table__
    now = datetime.utcnow()

    stmt = upsert_statement(
        db,
        table,
        values={"name": name, "current_value": first_value, "updated_at": now},
        index_elements=[table.c.name],
        set_={"current_value": table.c.current_value + 1, "updated_at": now},
        returning=[table.c.current_value],
    )
    if stmt is None:
        stmt = (
            update(table)
            .where(table.c.name == name)
            .values(current_value=table.c.current_value + 1, updated_at=now)
            .returning(table.c.current_value)
        )

    value = db.execute(stmt).scalar_one_or_none()
    if value is None:
        raise DataIntegrityError(f"Sequence '{name}' is not initialised")

    logger.debug(f"Issued {name}={value}")
    return int(value)


def next_job_number(db: Session) -> str:
    """Issue the next human-facing job number (J-XXXX)."""
    value = next_sequence_value(db, JOB_NUMBER_SEQUENCE, settings.job_number_start)
    return format_job_number(value)


def format_job_number(value: int) -> str:
    return f"J-{value:04d}"


def get_type_code(
    job_meta_type: Optional[str] = None,
    mail_format: Optional[str] = None,
    envelope_components: Optional[int] = None,
    job_type: Optional[str] = None,
) -> str:
    """
    Derive the type code from job metadata.

    Mailing jobs are coded by mail format (envelope codes carry the
    component count, defaulting to 1); other jobs by job type. Anything
    without a signal falls through to ``FJ``.
    """
    if job_meta_type == JobMetaType.MAILING:
        code = MAIL_FORMAT_TYPE_CODES.get(mail_format, MAILING_DEFAULT_TYPE_CODE)
        if mail_format == MailFormat.ENVELOPE:
            return f"{code}{envelope_components or 1}"
        return code

    if job_type:
        return JOB_TYPE_CODES.get(job_type, DEFAULT_TYPE_CODE)

    return DEFAULT_TYPE_CODE


def allocate_base_job_id(
    db: Session,
    job_meta_type: Optional[str] = None,
    mail_format: Optional[str] = None,
    envelope_components: Optional[int] = None,
    job_type: Optional[str] = None,
) -> BaseJobId:
    """
    Allocate a base job id. Must run inside the transaction that creates the job.

    Returns:
        BaseJobId with the composed id, the master sequence and the type code
    """
    type_code = get_type_code(job_meta_type, mail_format, envelope_components, job_type)
    master_seq = next_sequence_value(db, MASTER_SEQUENCE, settings.master_sequence_start + 1)
    return BaseJobId(
        base_job_id=f"{type_code}-{master_seq}",
        master_seq=master_seq,
        type_code=type_code,
    )


def generate_execution_id(base_job_id: str, vendor_code: str, vendor_count: int) -> str:
    """Vendor-specific execution id, e.g. ME2-3000-4198.3."""
    return f"{base_job_id}-{vendor_code}.{vendor_count}"


def generate_change_order_id(base_job_id: str, version: int) -> str:
    """Change order id anchored to the base job id, e.g. ME2-3000-CO1."""
    return f"{base_job_id}-CO{version}"


def parse_base_job_id(base_job_id: str) -> Optional[dict]:
    match = _BASE_JOB_ID_RE.match(base_job_id or "")
    if not match:
        return None
    return {"type_code": match.group(1), "master_seq": int(match.group(2))}


def parse_execution_id(execution_id: str) -> Optional[dict]:
    match = _EXECUTION_ID_RE.match(execution_id or "")
    if not match:
        return None
    return {
        "base_job_id": match.group(1),
        "vendor_code": match.group(2),
        "vendor_count": int(match.group(3)),
    }


def parse_change_order_id(change_order_id: str) -> Optional[dict]:
    match = _CHANGE_ORDER_ID_RE.match(change_order_id or "")
    if not match:
        return None
    return {"base_job_id": match.group(1), "version": int(match.group(2))}
