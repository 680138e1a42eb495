"""Build response schemas from models and pricing results."""

from dataclasses import asdict

from printbroker.models.job import Job
from printbroker.models.purchase_order import PurchaseOrder
from printbroker.schemas.job import JobComponentResponse, JobDetailResponse, JobResponse
from printbroker.schemas.payment import PaymentSnapshot
from printbroker.schemas.pricing import (
    CostBreakdownResponse,
    ProfitSplitResponse,
    StandardSizeResponse,
    Tier1Response,
    Tier2Response,
    Tier3Response,
    TierPricingResponse,
)
from printbroker.schemas.purchase_order import PurchaseOrderResponse
from printbroker.services.pricing_service import (
    CostBreakdown,
    PricingValidation,
    ProfitSplitResult,
    TierPricing,
    to_money_float,
    to_optional_money_float,
)
from printbroker.services.pricing_table import SizePricing


def _money_fields(result) -> dict:
    """Dataclass fields with Decimals turned into finite floats."""
    data = {}
    for key, value in asdict(result).items():
        if isinstance(value, (bool, int, str, list)) or value is None:
            data[key] = value
        else:
            data[key] = to_money_float(value)
    return data


def tier_pricing_response(tiers: TierPricing, validation: PricingValidation = None) -> TierPricingResponse:
    return TierPricingResponse(
        tier1=Tier1Response(**_money_fields(tiers.tier1)),
        tier2=Tier2Response(**_money_fields(tiers.tier2)),
        tier3=Tier3Response(**_money_fields(tiers.tier3)),
        quantity=tiers.quantity,
        size_name=tiers.size_name,
        paper_source=tiers.paper_source,
        is_standard_size=tiers.is_standard_size,
        errors=validation.errors if validation else [],
        warnings=validation.warnings if validation else [],
    )


def profit_split_response(result: ProfitSplitResult, validation: PricingValidation = None) -> ProfitSplitResponse:
    data = _money_fields(result)
    if validation:
        data["warnings"] = validation.warnings + data["warnings"]
        data["errors"] = validation.errors
    return ProfitSplitResponse(**data)


def cost_breakdown_response(breakdown: CostBreakdown) -> CostBreakdownResponse:
    return CostBreakdownResponse(**_money_fields(breakdown))


def standard_size_response(size_name: str, pricing: SizePricing) -> StandardSizeResponse:
    data = _money_fields(pricing)
    # Quoted to a tenth of a cent
    data["paper_cost_per_lb"] = float(pricing.paper_cost_per_lb)
    return StandardSizeResponse(size_name=size_name, **data)


def purchase_order_response(po: PurchaseOrder) -> PurchaseOrderResponse:
    return PurchaseOrderResponse(
        id=po.id,
        job_id=po.job_id,
        po_number=po.po_number,
        origin_company_id=po.origin_company_id,
        target_company_id=po.target_company_id,
        target_vendor_id=po.target_vendor_id,
        status=po.status,
        description=po.description,
        buy_cost=to_optional_money_float(po.buy_cost),
        paper_cost=to_optional_money_float(po.paper_cost),
        paper_markup=to_optional_money_float(po.paper_markup),
        mfg_cost=to_optional_money_float(po.mfg_cost),
        print_cpm=to_optional_money_float(po.print_cpm),
        paper_cpm=to_optional_money_float(po.paper_cpm),
        created_at=po.created_at,
    )


def payment_snapshot(job: Job, partner_total) -> PaymentSnapshot:
    """Unrecorded amounts serialize as 0.0; their dates stay null."""
    return PaymentSnapshot(
        job_id=job.id,
        job_no=job.job_no,
        sell_price=to_money_float(job.sell_price),
        partner_total=to_money_float(partner_total),
        customer_payment_amount=to_money_float(job.customer_payment_amount),
        customer_payment_date=job.customer_payment_date,
        partner_payment_amount=to_money_float(job.partner_payment_amount),
        partner_payment_date=job.partner_payment_date,
        notice_generated_at=job.notice_generated_at,
        notice_sent_at=job.notice_sent_at,
        notice_sent_to=job.notice_sent_to,
        notice_last_error=job.notice_last_error,
        downstream_payment_amount=to_money_float(job.downstream_payment_amount),
        downstream_payment_date=job.downstream_payment_date,
    )


def _job_fields(job: Job) -> dict:
    return dict(
        id=job.id,
        job_no=job.job_no,
        base_job_id=job.base_job_id,
        master_seq=job.master_seq,
        job_type_code=job.job_type_code,
        pathway=job.pathway,
        routing_type=job.routing_type,
        vendor_count=job.vendor_count,
        title=job.title,
        customer_id=job.customer_id,
        vendor_id=job.vendor_id,
        status=job.status,
        source=job.source,
        quantity=job.quantity,
        sell_price=to_money_float(job.sell_price),
        size_name=job.size_name,
        paper_source=job.paper_source,
        print_cpm=to_optional_money_float(job.print_cpm),
        specs=job.specs,
        notes=job.notes,
        customer_po_number=job.customer_po_number,
        partner_po_number=job.partner_po_number,
        due_date=job.due_date,
        mail_date=job.mail_date,
        in_homes_date=job.in_homes_date,
        external_job_id=job.external_job_id,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


def job_response(job: Job) -> JobResponse:
    return JobResponse(**_job_fields(job))


def job_detail_response(
    job: Job,
    tiers: TierPricing,
    profit_split: ProfitSplitResult,
    breakdown: CostBreakdown,
) -> JobDetailResponse:
    return JobDetailResponse(
        **_job_fields(job),
        components=[JobComponentResponse.model_validate(c) for c in job.components],
        purchase_orders=[purchase_order_response(po) for po in job.purchase_orders],
        cost_breakdown=cost_breakdown_response(breakdown),
        profit_split=profit_split_response(profit_split),
        pricing=tier_pricing_response(tiers),
        payments=payment_snapshot(job, profit_split.partner_total),
    )
