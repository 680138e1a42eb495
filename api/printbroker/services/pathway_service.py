"""
Pathway classification.

Pathways:
- P1: partner intermediary route (broker -> partner -> manufacturer), 50/50 split.
  Chosen by routing type only, never by which vendors are attached.
- P2: single external vendor, 65/35 split
- P3: more than one distinct vendor, 65/35 split

The vendor count is resolved by an ordered list of strategies; the first one
that returns a count wins.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Tuple

from printbroker.constants import ComponentOwner, Pathway, RoutingType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VendorSignals:
    """Vendor assignments known for a job at classification time."""

    po_vendor_ids: Tuple[str, ...] = ()
    component_vendor_ids: Tuple[str, ...] = ()
    vendor_id: Optional[str] = None

    @classmethod
    def from_records(
        cls,
        purchase_orders: Optional[Iterable[Any]] = None,
        components: Optional[Iterable[Any]] = None,
        vendor_id: Optional[str] = None,
    ) -> "VendorSignals":
        """
        Collect signals from purchase orders and components.

        Records may be ORM objects, pydantic models or dicts. Only POs that
        have both an origin party and an external vendor target count; only
        components owned by a vendor count.
        """
        po_vendor_ids = tuple(
            _field(po, "target_vendor_id")
            for po in purchase_orders or ()
            if _field(po, "target_vendor_id") and _field(po, "origin_company_id")
        )
        component_vendor_ids = tuple(
            _field(c, "vendor_id")
            for c in components or ()
            if _field(c, "owner") == ComponentOwner.VENDOR and _field(c, "vendor_id")
        )
        return cls(po_vendor_ids=po_vendor_ids, component_vendor_ids=component_vendor_ids, vendor_id=vendor_id)


@dataclass(frozen=True)
class PathwayResult:
    pathway: str
    vendor_count: int
    strategy: str = field(default="default", compare=False)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _count_po_vendors(signals: VendorSignals) -> Optional[int]:
    return len(set(signals.po_vendor_ids)) or None


def _count_component_vendors(signals: VendorSignals) -> Optional[int]:
    return len(set(signals.component_vendor_ids)) or None


def _default_single_vendor(signals: VendorSignals) -> Optional[int]:
    # Also covers jobs with no vendor information yet
    return 1


VENDOR_COUNT_STRATEGIES: List[Tuple[str, Callable[[VendorSignals], Optional[int]]]] = [
    ("purchase_orders", _count_po_vendors),
    ("components", _count_component_vendors),
    ("default", _default_single_vendor),
]


def resolve_vendor_count(signals: VendorSignals) -> Tuple[int, str]:
    """
    Run the vendor count strategies in order.

    Returns:
        Tuple of (vendor count, name of the strategy that decided)
    """
    for name, strategy in VENDOR_COUNT_STRATEGIES:
        count = strategy(signals)
        if count is not None:
            return count, name
    return 1, "default"


def count_distinct_vendors(signals: VendorSignals) -> int:
    return resolve_vendor_count(signals)[0]


def classify(routing_type: Optional[str], signals: Optional[VendorSignals] = None) -> PathwayResult:
    """
    Classify a job into a pathway.

    Args:
        routing_type: Routing choice made for the job
        signals: Vendor assignments; empty signals count as one vendor

    Returns:
        PathwayResult with pathway and vendor count
    """
    signals = signals or VendorSignals()
    vendor_count, strategy = resolve_vendor_count(signals)

    if routing_type == RoutingType.PARTNER_INTERMEDIARY:
        return PathwayResult(Pathway.P1, vendor_count, strategy)
    if vendor_count > 1:
        return PathwayResult(Pathway.P3, vendor_count, strategy)
    return PathwayResult(Pathway.P2, vendor_count, strategy)


def classify_job(job) -> PathwayResult:
    """Classify a persisted job from its purchase orders and components."""
    signals = VendorSignals.from_records(job.purchase_orders, job.components, job.vendor_id)
    return classify(job.routing_type, signals)


def refresh_vendor_count(job) -> PathwayResult:
    """
    Recompute ``vendor_count`` after vendor assignments change.

    The stored pathway is fixed at creation and is not reassigned; a
    disagreement with the recomputed pathway is logged for follow-up.
    """
    result = classify_job(job)
    job.vendor_count = result.vendor_count
    if job.pathway and job.pathway != result.pathway:
        logger.warning(
            f"Job {job.job_no} is stored as {job.pathway} but its vendors now classify as "
            f"{result.pathway} (vendor_count={result.vendor_count})"
        )
    return result


def profit_split_percentages(pathway: Optional[str]) -> dict:
    """Broker/partner split percentages for a pathway."""
    if pathway == Pathway.P1:
        return {"broker_percent": 50, "partner_percent": 50}
    return {"broker_percent": 65, "partner_percent": 35}


def is_partner_pathway(pathway: Optional[str]) -> bool:
    return pathway == Pathway.P1


def is_multi_vendor_pathway(pathway: Optional[str]) -> bool:
    return pathway == Pathway.P3
