"""Global sequence counter model."""

from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, String

from printbroker.database import Base


class GlobalSequence(Base):
    """
    Single-row counter per sequence name.

    ``current_value`` is the last value handed out. It only ever moves up via
    an atomic ``UPDATE ... SET current_value = current_value + 1 RETURNING``.
    """

    __tablename__ = "global_sequences"

    name = Column(String(50), primary_key=True)
    current_value = Column(BigInteger, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<GlobalSequence(name={self.name}, current_value={self.current_value})>"
