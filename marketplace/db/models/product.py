# marketplace/db/models/product.py
from sqlalchemy import Column, String, Text, ForeignKey, Uuid, Numeric, Boolean, DateTime, func
from marketplace.db.base import Base
import uuid


class Product(Base):
    """
    Product model. Only the columns the category hierarchy relies on are
    mapped here: the owning supplier and the optional category reference.
    """

    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String, nullable=False, index=True)
    sku = Column(String, index=True, comment="Stock keeping unit")
    description = Column(Text)
    price = Column(Numeric(12, 2))
    active = Column(Boolean, nullable=False, default=True)
    category_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"
