"""Profit split cache model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from printbroker.database import Base
from printbroker.models.columns import Money


class ProfitSplit(Base):
    """
    Cached result of the profit split for a job.

    Exactly one row per job (unique ``job_id``). Upserted whenever the sell
    price or purchase order costs change.
    """

    __tablename__ = "profit_splits"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, unique=True)
    sell_price = Column(Money, nullable=False, default=0)
    total_cost = Column(Money, nullable=False, default=0)
    paper_cost = Column(Money, nullable=False, default=0)
    paper_markup = Column(Money, nullable=False, default=0)
    gross_margin = Column(Money, nullable=False, default=0)
    partner_share = Column(Money, nullable=False, default=0)
    broker_share = Column(Money, nullable=False, default=0)
    calculated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="profit_split")

    def __repr__(self):
        return f"<ProfitSplit(job_id={self.job_id}, gross_margin={self.gross_margin})>"
