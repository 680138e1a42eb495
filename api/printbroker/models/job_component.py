"""Job component model."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from printbroker.database import Base
from printbroker.models.columns import new_uuid


class JobComponent(Base):
    """Named sub-component of a job (e.g. envelope, letter, reply card)."""

    __tablename__ = "job_components"

    id = Column(String(36), primary_key=True, default=new_uuid)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    specs = Column(JSON, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    owner = Column(String(20), nullable=True)  # BROKER, VENDOR, CUSTOMER
    vendor_id = Column(String(36), ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="components")
    vendor = relationship("Vendor")

    def __repr__(self):
        return f"<JobComponent(id={self.id}, name={self.name}, job_id={self.job_id})>"
