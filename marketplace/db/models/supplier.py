# marketplace/db/models/supplier.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, Uuid, func
from marketplace.db.base import Base
import uuid


class Supplier(Base):
    """
    Supplier model representing the tenant that owns a catalog.
    Every category and product belongs to exactly one supplier.
    """

    __tablename__ = "suppliers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    subdomain = Column(String, unique=True, index=True, nullable=True, comment="Unique subdomain for multi-tenant access")
    description = Column(Text)
    active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Supplier(id={self.id}, name='{self.name}')>"
