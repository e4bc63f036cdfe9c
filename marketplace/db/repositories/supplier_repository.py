# marketplace/db/repositories/supplier_repository.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session
from marketplace.db.models.supplier import Supplier
from marketplace.services.hierarchy.slugs import slugify, next_free_slug


class SupplierRepository:
    """Repository for CRUD operations on Supplier model"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_by_id(self, supplier_id: UUID) -> Optional[Supplier]:
        """Get supplier by ID"""
        return (
            self.db_session.query(Supplier)
            .filter(Supplier.id == supplier_id)
            .first()
        )

    def get_by_subdomain(self, subdomain: str) -> Optional[Supplier]:
        """Get supplier by subdomain"""
        return (
            self.db_session.query(Supplier)
            .filter(Supplier.subdomain == subdomain)
            .first()
        )

    def list(self, skip: int = 0, limit: int = 100) -> List[Supplier]:
        """List suppliers with pagination"""
        return self.db_session.query(Supplier).offset(skip).limit(limit).all()

    def create(self, name: str, subdomain: Optional[str] = None, description: Optional[str] = None) -> Supplier:
        """Create a new supplier, deriving a unique subdomain from its name"""
        if not subdomain:
            taken = {row.subdomain for row in self.db_session.query(Supplier.subdomain).all()}
            subdomain = next_free_slug(
                slugify(name, max_length=63, fallback="fornecedor"), taken, max_length=63
            )

        db_supplier = Supplier(name=name, subdomain=subdomain, description=description)

        self.db_session.add(db_supplier)
        self.db_session.commit()
        self.db_session.refresh(db_supplier)

        return db_supplier
