"""Ordering portal webhook schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PortalJobSpecs(BaseModel):
    """Free-form specs; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    source: Optional[str] = None
    externalJobNo: Optional[str] = None
    sellPrice: Optional[float] = Field(None, ge=0)
    buyCost: Optional[float] = None
    vendorName: Optional[str] = None
    paperSource: Optional[str] = None


class PortalJobPayload(BaseModel):
    """Job pushed by the ordering portal."""

    jobNo: str = Field(..., min_length=1)
    title: Optional[str] = None
    companyId: Optional[str] = None
    companyName: str = Field(..., min_length=1)
    customerPONumber: Optional[str] = None
    sizeName: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    specs: Optional[PortalJobSpecs] = None
    status: Optional[str] = None
    deliveryDate: Optional[str] = None
    createdAt: Optional[str] = None
    externalJobId: str = Field(..., min_length=1)


class WebhookJobResponse(BaseModel):
    success: bool = True
    action: str  # created or updated
    jobId: str
    jobNo: str
    baseJobId: Optional[str] = None
    pathway: Optional[str] = None


class WebhookHealthResponse(BaseModel):
    status: str
    configured: bool
    timestamp: str
