"""ProfitSplit cache: one row per job, upserted whenever sell price or PO costs change."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from printbroker.db.upsert import upsert_statement
from printbroker.models.profit_split import ProfitSplit
from printbroker.services.pricing_service import (
    ProfitSplitResult,
    calculate_cost_breakdown,
    calculate_job_profit_split,
    calculate_profit_split,
)

logger = logging.getLogger(__name__)


def refresh_profit_split(db: Session, job) -> ProfitSplitResult:
    """
    Recompute the job's profit split and upsert the cached row.

    Must run inside the transaction that changed the inputs so the cache
    never lags behind the job.

    Args:
        db: Database session
        job: Job with its purchase orders loaded or loadable

    Returns:
        The freshly computed ProfitSplitResult
    """
    db.flush()
    breakdown = calculate_cost_breakdown(job.purchase_orders)
    result = calculate_profit_split(job.sell_price, breakdown.total_cost, breakdown.paper_markup)

    values = {
        "sell_price": result.sell_price,
        "total_cost": result.total_cost,
        "paper_cost": breakdown.paper_cost,
        "paper_markup": result.paper_markup,
        "gross_margin": result.gross_margin,
        "partner_share": result.partner_total,
        "broker_share": result.broker_total,
        "calculated_at": datetime.utcnow(),
    }

    table = ProfitSplit.__table__
    stmt = upsert_statement(
        db,
        table,
        values={"job_id": job.id, **values},
        index_elements=[table.c.job_id],
        set_=values,
    )
    if stmt is not None:
        db.execute(stmt)
        db.expire(job, ["profit_split"])
    else:
        split = db.query(ProfitSplit).filter(ProfitSplit.job_id == job.id).first()
        if split is None:
            split = ProfitSplit(job_id=job.id)
            db.add(split)
        for key, value in values.items():
            setattr(split, key, value)

    if result.warnings:
        logger.info(f"Job {job.job_no} pricing warnings: {'; '.join(result.warnings)}")
    return result


def get_partner_total(db: Session, job):
    """
    Partner's total share for a job.

    Reads the cached row when it exists, otherwise computes it on the fly.
    """
    split = db.query(ProfitSplit).filter(ProfitSplit.job_id == job.id).populate_existing().first()
    if split is not None:
        return split.partner_share
    return calculate_job_profit_split(job).partner_total
