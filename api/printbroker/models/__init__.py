"""SQLAlchemy models."""

from printbroker.database import Base
from printbroker.models.company import Company, Vendor
from printbroker.models.global_sequence import GlobalSequence
from printbroker.models.job import Job
from printbroker.models.job_activity import JobActivity
from printbroker.models.job_component import JobComponent
from printbroker.models.profit_split import ProfitSplit
from printbroker.models.purchase_order import PurchaseOrder

__all__ = [
    "Base",
    "Company",
    "Vendor",
    "GlobalSequence",
    "Job",
    "JobActivity",
    "JobComponent",
    "ProfitSplit",
    "PurchaseOrder",
]
