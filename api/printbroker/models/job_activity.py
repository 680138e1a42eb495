"""Job activity (audit log) model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from printbroker.database import Base
from printbroker.models.columns import new_uuid


class JobActivity(Base):
    """One field change on a job."""

    __tablename__ = "job_activities"

    id = Column(String(36), primary_key=True, default=new_uuid)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    field = Column(String(100), nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    changed_by = Column(String(255), nullable=False, default="system")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    job = relationship("Job", back_populates="activities")

    def __repr__(self):
        return f"<JobActivity(job_id={self.job_id}, action={self.action}, field={self.field})>"
