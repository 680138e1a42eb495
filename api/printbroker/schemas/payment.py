"""Payment workflow schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CustomerPaymentRequest(BaseModel):
    """Step 1: record or clear the customer's payment."""

    status: str = Field(default="paid", pattern="^(paid|unpaid)$")
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2, description="Defaults to the sell price")
    date: Optional[datetime] = None


class PartnerPaymentRequest(BaseModel):
    """Step 2: record the broker's payment to the partner."""

    date: Optional[datetime] = None
    send_notice: bool = Field(default=True, description="Send the downstream invoice notice after recording")


class InvoiceNoticeRequest(BaseModel):
    """Step 3: send or resend the downstream invoice notice."""

    recipient: Optional[str] = Field(None, max_length=255, description="Defaults to the configured partner address")


class DownstreamPaymentRequest(BaseModel):
    """Step 4: record the partner's payment to the manufacturer."""

    date: Optional[datetime] = None


class PaymentSnapshot(BaseModel):
    """Financial state of a job across the four workflow steps."""

    job_id: str
    job_no: str
    sell_price: float
    partner_total: float
    customer_payment_amount: float
    customer_payment_date: Optional[datetime]
    partner_payment_amount: float
    partner_payment_date: Optional[datetime]
    notice_generated_at: Optional[datetime]
    notice_sent_at: Optional[datetime]
    notice_sent_to: Optional[str]
    notice_last_error: Optional[str]
    downstream_payment_amount: float
    downstream_payment_date: Optional[datetime]


class NoticeResult(BaseModel):
    sent: bool
    recipient: Optional[str] = None
    error: Optional[str] = None


class PaymentStepResponse(BaseModel):
    """Result of a payment workflow step."""

    success: bool = True
    message: str
    payments: PaymentSnapshot
    notice: Optional[NoticeResult] = None
