"""Purchase order model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from printbroker.database import Base
from printbroker.models.columns import Money, Rate, new_uuid


class PurchaseOrder(Base):
    """
    Cost commitment from one party to another for a job.

    Internal parties are referenced by ``origin_company_id`` /
    ``target_company_id`` (see ``CompanyIds``); external vendors by
    ``target_vendor_id``.
    """

    __tablename__ = "purchase_orders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    po_number = Column(String(100), nullable=False, unique=True)
    origin_company_id = Column(String(50), nullable=True, index=True)
    target_company_id = Column(String(50), nullable=True)
    target_vendor_id = Column(String(36), ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="PENDING")
    description = Column(Text, nullable=True)
    buy_cost = Column(Money, nullable=True)
    paper_cost = Column(Money, nullable=True)
    paper_markup = Column(Money, nullable=True)
    mfg_cost = Column(Money, nullable=True)
    print_cpm = Column(Rate, nullable=True)
    paper_cpm = Column(Rate, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="purchase_orders")
    target_vendor = relationship("Vendor")

    def __repr__(self):
        return (
            f"<PurchaseOrder(id={self.id}, po_number={self.po_number}, "
            f"{self.origin_company_id}->{self.target_company_id or self.target_vendor_id})>"
        )
