"""Purchase order schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class PurchaseOrderCreate(BaseModel):
    """
    Request to create a purchase order.

    Internal parties use ``target_company_id`` (broker, partner,
    manufacturer); external vendors use ``target_vendor_id``.
    """

    origin_company_id: str = Field(..., min_length=1, max_length=50)
    target_company_id: Optional[str] = Field(None, max_length=50)
    target_vendor_id: Optional[str] = None
    po_number: Optional[str] = Field(None, max_length=100, description="Generated when omitted")
    description: Optional[str] = None
    status: str = Field(default="PENDING", max_length=20)
    buy_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    paper_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    paper_markup: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    mfg_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    print_cpm: Optional[Decimal] = Field(None, ge=0)
    paper_cpm: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_target(self):
        if not self.target_company_id and not self.target_vendor_id:
            raise ValueError("Either target_company_id or target_vendor_id is required")
        return self


class PurchaseOrderUpdate(BaseModel):
    """Partial update of a purchase order's costs or status."""

    description: Optional[str] = None
    status: Optional[str] = Field(None, max_length=20)
    target_vendor_id: Optional[str] = None
    buy_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    paper_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    paper_markup: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    mfg_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    print_cpm: Optional[Decimal] = Field(None, ge=0)
    paper_cpm: Optional[Decimal] = Field(None, ge=0)


class PurchaseOrderResponse(BaseModel):
    id: str
    job_id: str
    po_number: str
    origin_company_id: Optional[str]
    target_company_id: Optional[str]
    target_vendor_id: Optional[str]
    status: str
    description: Optional[str]
    buy_cost: Optional[float]
    paper_cost: Optional[float]
    paper_markup: Optional[float]
    mfg_cost: Optional[float]
    print_cpm: Optional[float]
    paper_cpm: Optional[float]
    created_at: datetime
