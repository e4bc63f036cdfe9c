# marketplace/db/models/category.py
from sqlalchemy import (
    Column,
    String,
    Text,
    Boolean,
    Integer,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    UniqueConstraint,
    Index,
    Uuid,
    func,
)
from marketplace.db.base import Base
import uuid


class Category(Base):
    """
    Category model representing one node of a supplier's product category tree.

    The tree is stored as a flat table: ``parent_id`` is a lookup key into the
    same table, never an ownership pointer. The composite foreign key keeps a
    parent inside the same supplier.
    """

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("owner_id", "slug", name="uq_categories_owner_slug"),
        UniqueConstraint("owner_id", "id", name="uq_categories_owner_id"),
        ForeignKeyConstraint(
            ["owner_id", "parent_id"],
            ["categories.owner_id", "categories.id"],
            name="fk_categories_parent_same_owner",
        ),
        Index("ix_categories_owner_parent", "owner_id", "parent_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    slug = Column(String(120), nullable=False)
    description = Column(Text)
    image = Column(String)
    parent_id = Column(Uuid(as_uuid=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    order = Column("sort_order", Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}')>"
