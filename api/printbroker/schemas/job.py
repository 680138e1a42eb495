"""Job schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from printbroker.constants import (
    ComponentOwner,
    JobMetaType,
    JobStatus,
    JobType,
    MailFormat,
    PaperSource,
    Pathway,
    RoutingType,
    enum_pattern,
)
from printbroker.schemas.payment import PaymentSnapshot
from printbroker.schemas.pricing import CostBreakdownResponse, ProfitSplitResponse, TierPricingResponse
from printbroker.schemas.purchase_order import PurchaseOrderResponse


# Job Create/Update Schemas
class JobComponentCreate(BaseModel):
    """Named sub-component of a job."""

    name: str = Field(..., min_length=1, max_length=255)
    specs: Optional[Dict[str, Any]] = None
    sort_order: Optional[int] = Field(None, ge=0)
    owner: Optional[str] = Field(None, pattern=enum_pattern(ComponentOwner.ALL))
    vendor_id: Optional[str] = None


class JobCreateRequest(BaseModel):
    """Request to create a new job."""

    title: str = Field(..., min_length=1, max_length=500)
    customer_id: str = Field(..., description="Customer company ID")
    vendor_id: Optional[str] = Field(None, description="Primary vendor ID (optional)")
    quantity: int = Field(default=0, ge=0)
    sell_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    size_name: Optional[str] = Field(None, max_length=50, description="Standard size, e.g. '7 1/4 x 16 3/8'")
    paper_source: Optional[str] = Field(None, pattern=enum_pattern(PaperSource.ALL))
    routing_type: Optional[str] = Field(None, pattern=enum_pattern(RoutingType.ALL))
    print_cpm: Optional[Decimal] = Field(None, ge=0, description="Manufacturer print rate per thousand")

    # Drive the type code of the base job id
    job_meta_type: Optional[str] = Field(None, pattern=enum_pattern(JobMetaType.ALL))
    mail_format: Optional[str] = Field(None, pattern=enum_pattern(MailFormat.ALL))
    envelope_components: Optional[int] = Field(None, ge=1)
    job_type: Optional[str] = Field(None, pattern=enum_pattern(JobType.ALL))

    status: str = Field(default=JobStatus.ACTIVE, pattern=enum_pattern(JobStatus.ALL))
    specs: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    customer_po_number: Optional[str] = Field(None, max_length=100)
    partner_po_number: Optional[str] = Field(None, max_length=100)
    due_date: Optional[date] = None
    mail_date: Optional[date] = None
    in_homes_date: Optional[date] = None
    components: List[JobComponentCreate] = Field(default_factory=list)


class JobBatchCreateRequest(BaseModel):
    """Request to create several jobs with contiguous numbers."""

    jobs: List[JobCreateRequest] = Field(..., min_length=1, max_length=500)


class JobUpdateRequest(BaseModel):
    """Partial update of a job. Identifiers and pathway are not updatable."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    vendor_id: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    sell_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    size_name: Optional[str] = Field(None, max_length=50)
    paper_source: Optional[str] = Field(None, pattern=enum_pattern(PaperSource.ALL))
    print_cpm: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern=enum_pattern(JobStatus.ALL))
    specs: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    customer_po_number: Optional[str] = Field(None, max_length=100)
    partner_po_number: Optional[str] = Field(None, max_length=100)
    due_date: Optional[date] = None
    mail_date: Optional[date] = None
    in_homes_date: Optional[date] = None


class JobCreateResponse(BaseModel):
    """Response after creating a job."""

    id: str
    job_no: str
    base_job_id: str
    pathway: str
    vendor_count: int
    created_at: datetime
    cost_orders_created: bool = False
    cost_orders_skipped_reason: Optional[str] = None


class JobBatchCreateResponse(BaseModel):
    jobs: List[JobCreateResponse]
    count: int


# Job Read Schemas
class JobComponentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    specs: Optional[Dict[str, Any]]
    sort_order: int
    owner: Optional[str]
    vendor_id: Optional[str]


class JobResponse(BaseModel):
    """Job summary with money fields as plain numbers."""

    id: str
    job_no: str
    base_job_id: Optional[str]
    master_seq: Optional[int]
    job_type_code: Optional[str]
    pathway: Optional[str] = Field(None, pattern=enum_pattern(Pathway.ALL))
    routing_type: str
    vendor_count: int
    title: str
    customer_id: str
    vendor_id: Optional[str]
    status: str
    source: Optional[str]
    quantity: int
    sell_price: float
    size_name: Optional[str]
    paper_source: str
    print_cpm: Optional[float]
    specs: Optional[Dict[str, Any]]
    notes: Optional[str]
    customer_po_number: Optional[str]
    partner_po_number: Optional[str]
    due_date: Optional[date]
    mail_date: Optional[date]
    in_homes_date: Optional[date]
    external_job_id: Optional[str]
    created_at: datetime
    updated_at: datetime


class JobDetailResponse(JobResponse):
    """Full job snapshot: components, POs, pricing, profit split and payments."""

    components: List[JobComponentResponse]
    purchase_orders: List[PurchaseOrderResponse]
    cost_breakdown: CostBreakdownResponse
    profit_split: ProfitSplitResponse
    pricing: TierPricingResponse
    payments: PaymentSnapshot


class JobListResponse(BaseModel):
    """Paginated job list."""

    jobs: List[JobResponse]
    total: int
    page: int
    page_size: int


class JobActivityResponse(BaseModel):
    """Audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    action: str
    field: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]
    changed_by: str
    created_at: datetime
