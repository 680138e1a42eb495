"""Payment workflow endpoints, nested under a job."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from printbroker.api.deps import get_actor, get_db, get_notice_sender
from printbroker.api.errors import to_http_exception
from printbroker.schemas.payment import (
    CustomerPaymentRequest,
    DownstreamPaymentRequest,
    InvoiceNoticeRequest,
    NoticeResult,
    PartnerPaymentRequest,
    PaymentSnapshot,
    PaymentStepResponse,
)
from printbroker.services.errors import BrokerServiceError
from printbroker.services.job_service import get_job_by_id
from printbroker.services.notice_sender import BaseNoticeSender
from printbroker.services.payment_service import (
    get_payment_snapshot,
    mark_customer_paid,
    mark_customer_unpaid,
    mark_downstream_paid,
    mark_partner_paid,
    send_invoice_notice,
)

router = APIRouter()


def _step_response(db: Session, job, message: str, outcome=None) -> PaymentStepResponse:
    notice = None
    if outcome is not None:
        notice = NoticeResult(sent=outcome.sent, recipient=outcome.recipient, error=outcome.error)
    return PaymentStepResponse(message=message, payments=get_payment_snapshot(db, job), notice=notice)


@router.get("", response_model=PaymentSnapshot)
def get_payments(
    job_id: str,
    db: Session = Depends(get_db),
):
    """Payment state across the four workflow steps."""
    try:
        return get_payment_snapshot(db, get_job_by_id(db, job_id))
    except BrokerServiceError as e:
        raise to_http_exception(e)


@router.post("/customer", response_model=PaymentStepResponse)
def customer_payment(
    job_id: str,
    request: CustomerPaymentRequest,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """
    Step 1: record (or clear) the customer's payment.

    - **status**: paid (default) or unpaid
    - **amount**: Defaults to the job's sell price
    """
    try:
        if request.status == "unpaid":
            job = mark_customer_unpaid(db, job_id, changed_by=actor)
            return _step_response(db, job, "Customer payment cleared")
        job = mark_customer_paid(db, job_id, request.amount, request.date, changed_by=actor)
        return _step_response(db, job, "Customer payment recorded")
    except BrokerServiceError as e:
        raise to_http_exception(e)


@router.post("/partner", response_model=PaymentStepResponse)
def partner_payment(
    job_id: str,
    request: PartnerPaymentRequest,
    db: Session = Depends(get_db),
    sender: BaseNoticeSender = Depends(get_notice_sender),
    actor: Optional[str] = Depends(get_actor),
):
    """
    Step 2: record the broker's payment to the partner.

    Requires the customer payment and can be recorded only once. The invoice
    notice is sent afterwards; a failed notice is reported but the payment
    stands.
    """
    try:
        job, outcome = mark_partner_paid(
            db, job_id, sender=sender, paid_at=request.date, send_notice=request.send_notice, changed_by=actor
        )
        message = "Partner payment recorded"
        if outcome is not None and not outcome.sent:
            message = "Partner payment recorded; invoice notice failed"
        return _step_response(db, job, message, outcome)
    except BrokerServiceError as e:
        raise to_http_exception(e)


@router.post("/invoice-notice", response_model=PaymentStepResponse)
def invoice_notice(
    job_id: str,
    request: InvoiceNoticeRequest,
    db: Session = Depends(get_db),
    sender: BaseNoticeSender = Depends(get_notice_sender),
    actor: Optional[str] = Depends(get_actor),
):
    """
    Step 3: send or resend the downstream invoice notice.

    Returns 502 when the sender fails; the failure is recorded on the job.
    """
    try:
        job, outcome = send_invoice_notice(db, job_id, sender, request.recipient, changed_by=actor)
    except BrokerServiceError as e:
        raise to_http_exception(e)

    if not outcome.sent:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Bad Gateway",
                "code": "NOTICE_FAILED",
                "message": f"Invoice notice could not be sent: {outcome.error}",
                "recipient": outcome.recipient,
            },
        )
    return _step_response(db, job, f"Invoice notice sent to {outcome.recipient}", outcome)


@router.post("/downstream", response_model=PaymentStepResponse)
def downstream_payment(
    job_id: str,
    request: DownstreamPaymentRequest,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """Step 4: record the partner's payment to the manufacturer."""
    try:
        job = mark_downstream_paid(db, job_id, request.date, changed_by=actor)
        return _step_response(db, job, "Manufacturer payment recorded")
    except BrokerServiceError as e:
        raise to_http_exception(e)
