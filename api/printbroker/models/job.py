"""Job model."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from printbroker.constants import JobStatus, PaperSource, RoutingType
from printbroker.database import Base
from printbroker.models.columns import Money, Rate, new_uuid


class Job(Base):
    """Brokered print job."""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=new_uuid)
    job_no = Column(String(20), nullable=False, unique=True, index=True)  # J-1001

    # Pathway system; fixed at creation
    base_job_id = Column(String(30), nullable=True, unique=True, index=True)  # ME2-3001
    master_seq = Column(BigInteger, nullable=True)
    job_type_code = Column(String(10), nullable=True)
    pathway = Column(String(2), nullable=True, index=True)
    routing_type = Column(String(30), nullable=False, default=RoutingType.DEFAULT)
    vendor_count = Column(Integer, nullable=False, default=0)
    job_meta_type = Column(String(20), nullable=True)
    mail_format = Column(String(20), nullable=True)
    envelope_components = Column(Integer, nullable=True)
    job_type = Column(String(30), nullable=True)

    title = Column(String(500), nullable=False, default="")
    customer_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    vendor_id = Column(String(36), ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=JobStatus.ACTIVE, index=True)
    source = Column(String(20), nullable=True)

    # Pricing inputs
    quantity = Column(Integer, nullable=False, default=0)
    sell_price = Column(Money, nullable=False, default=0)
    size_name = Column(String(50), nullable=True)
    paper_source = Column(String(30), nullable=False, default=PaperSource.DEFAULT)
    print_cpm = Column(Rate, nullable=True)  # manufacturer print rate override

    specs = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    customer_po_number = Column(String(100), nullable=True)
    partner_po_number = Column(String(100), nullable=True)
    due_date = Column(Date, nullable=True)
    mail_date = Column(Date, nullable=True)
    in_homes_date = Column(Date, nullable=True)

    external_job_id = Column(String(100), nullable=True, unique=True, index=True)
    external_source = Column(String(100), nullable=True)

    # Step 1: customer -> broker
    customer_payment_amount = Column(Money, nullable=True)
    customer_payment_date = Column(DateTime, nullable=True)
    # Step 2: broker -> partner
    partner_payment_amount = Column(Money, nullable=True)
    partner_payment_date = Column(DateTime, nullable=True)
    # Step 3: downstream invoice notice to partner
    notice_generated_at = Column(DateTime, nullable=True)
    notice_sent_at = Column(DateTime, nullable=True)
    notice_sent_to = Column(String(255), nullable=True)
    notice_last_error = Column(Text, nullable=True)
    # Step 4: partner -> manufacturer
    downstream_payment_amount = Column(Money, nullable=True)
    downstream_payment_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    customer = relationship("Company", back_populates="jobs")
    vendor = relationship("Vendor", back_populates="jobs")
    components = relationship(
        "JobComponent",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobComponent.sort_order",
    )
    purchase_orders = relationship(
        "PurchaseOrder",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="PurchaseOrder.created_at",
    )
    profit_split = relationship(
        "ProfitSplit",
        back_populates="job",
        cascade="all, delete-orphan",
        uselist=False,
    )
    activities = relationship(
        "JobActivity",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobActivity.created_at",
    )

    def __repr__(self):
        return f"<Job(id={self.id}, job_no={self.job_no}, base_job_id={self.base_job_id}, pathway={self.pathway})>"
