from sqlalchemy import Column, DateTime, String, Text, func
from .base import Base


class BlobRecord(Base):
    """One persisted JSON snapshot, addressed by key."""

    __tablename__ = "blob_record"

    key = Column(String(64), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
