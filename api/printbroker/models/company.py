"""Company and vendor models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from printbroker.database import Base
from printbroker.models.columns import new_uuid


class Company(Base):
    """Customer company ordering print work."""

    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False, index=True)
    type = Column(String(20), nullable=False, default="CUSTOMER")
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    jobs = relationship("Job", back_populates="customer")

    def __repr__(self):
        return f"<Company(id={self.id}, name={self.name})>"


class Vendor(Base):
    """External production vendor."""

    __tablename__ = "vendors"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False, index=True)
    vendor_code = Column(String(50), nullable=True, unique=True)  # used in execution ids
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    jobs = relationship("Job", back_populates="vendor")

    def __repr__(self):
        return f"<Vendor(id={self.id}, name={self.name}, code={self.vendor_code})>"
