# marketplace/db/repositories/category_repository.py
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from marketplace.core.exceptions import DuplicateSlugError, HierarchyConflictError
from marketplace.db.models.category import Category
from marketplace.db.models.product import Product
from marketplace.services.hierarchy.store import CategoryStore

# deadlock_detected, serialization_failure
LOCK_CONFLICT_SQLSTATES = {"40P01", "40001"}


def _is_lock_conflict(error: OperationalError) -> bool:
    orig = error.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return code in LOCK_CONFLICT_SQLSTATES


class CategoryRepository(CategoryStore):
    """Repository for supplier-scoped CRUD operations on Category model"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def _query(self, owner_id: UUID):
        return self.db_session.query(Category).filter(Category.owner_id == owner_id)

    def find_all(self, owner_id: UUID) -> List[Category]:
        """List all categories of a supplier ordered by (order, name)"""
        return self._query(owner_id).order_by(Category.order, Category.name).all()

    def find_by_id(self, category_id: UUID, owner_id: UUID) -> Optional[Category]:
        """Get category by ID"""
        return self._query(owner_id).filter(Category.id == category_id).first()

    def find_by_slug(self, slug: str, owner_id: UUID) -> Optional[Category]:
        """Get category by slug"""
        return self._query(owner_id).filter(Category.slug == slug).first()

    def create(self, data: Dict[str, Any]) -> Category:
        """Create a new category"""
        db_category = Category(**data)

        self.db_session.add(db_category)
        self._commit(data.get("slug"), data.get("owner_id"))
        self.db_session.refresh(db_category)

        return db_category

    def update(self, category_id: UUID, owner_id: UUID, patch: Dict[str, Any]) -> Optional[Category]:
        """Update an existing category"""
        db_category = self.find_by_id(category_id, owner_id)

        if not db_category:
            return None

        for key, value in patch.items():
            setattr(db_category, key, value)

        new_parent_id = patch.get("parent_id")
        try:
            if new_parent_id is not None:
                # Re-read the ancestor chain inside this transaction, after our own
                # write is visible, so a concurrent move cannot close a cycle
                self._flush(patch.get("slug"), owner_id)
                if self._chain_reaches(category_id, new_parent_id, owner_id):
                    self.db_session.rollback()
                    raise HierarchyConflictError(category_id, new_parent_id)

            self._commit(patch.get("slug"), owner_id)
        except OperationalError as e:
            # Opposite concurrent moves lock each other's rows; the database
            # aborts one of them
            self.db_session.rollback()
            if new_parent_id is not None and _is_lock_conflict(e):
                raise HierarchyConflictError(category_id, new_parent_id) from e
            raise

        self.db_session.refresh(db_category)

        return db_category

    def delete(self, category_id: UUID, owner_id: UUID) -> bool:
        """Delete a category by ID"""
        db_category = self.find_by_id(category_id, owner_id)

        if not db_category:
            return False

        self.db_session.delete(db_category)
        self.db_session.commit()

        return True

    def delete_subtree(self, category_ids: Sequence[UUID], owner_id: UUID) -> int:
        """Delete categories and detach their products in one transaction"""
        ids = list(category_ids)
        if not ids:
            return 0

        try:
            (
                self.db_session.query(Product)
                .filter(Product.owner_id == owner_id, Product.category_id.in_(ids))
                .update({Product.category_id: None}, synchronize_session="fetch")
            )
            deleted = (
                self._query(owner_id)
                .filter(Category.id.in_(ids))
                .delete(synchronize_session="fetch")
            )
            self.db_session.commit()
        except Exception:
            self.db_session.rollback()
            raise

        return deleted

    def count_products(self, category_id: UUID) -> int:
        """Count products referencing a category"""
        return (
            self.db_session.query(func.count(Product.id))
            .filter(Product.category_id == category_id)
            .scalar()
        )

    def count_subcategories(self, category_id: UUID) -> int:
        """Count direct subcategories"""
        return (
            self.db_session.query(func.count(Category.id))
            .filter(Category.parent_id == category_id)
            .scalar()
        )

    def count_products_by_category(self, owner_id: UUID) -> Dict[UUID, int]:
        """Product count per category for a supplier"""
        rows = (
            self.db_session.query(Product.category_id, func.count(Product.id))
            .filter(Product.owner_id == owner_id, Product.category_id.isnot(None))
            .group_by(Product.category_id)
            .all()
        )
        return {category_id: count for category_id, count in rows}

    def _chain_reaches(self, category_id: UUID, parent_id: UUID, owner_id: UUID) -> bool:
        """Walk parent pointers from ``parent_id``; True if it meets ``category_id`` or loops"""
        lock_rows = self.db_session.get_bind().dialect.name == "postgresql"
        visited = set()
        current_id = parent_id

        while current_id is not None:
            if current_id == category_id or current_id in visited:
                return True
            visited.add(current_id)

            query = self.db_session.query(Category.parent_id).filter(
                Category.id == current_id, Category.owner_id == owner_id
            )
            if lock_rows:
                query = query.with_for_update()
            row = query.first()
            current_id = row.parent_id if row else None

        return False

    def _flush(self, slug: Optional[str], owner_id: Optional[UUID]):
        try:
            self.db_session.flush()
        except IntegrityError as e:
            self._raise_integrity(e, slug, owner_id)

    def _commit(self, slug: Optional[str], owner_id: Optional[UUID]):
        try:
            self.db_session.commit()
        except IntegrityError as e:
            self._raise_integrity(e, slug, owner_id)

    def _raise_integrity(self, error: IntegrityError, slug: Optional[str], owner_id: Optional[UUID]):
        self.db_session.rollback()
        if "slug" in str(error.orig).lower():
            raise DuplicateSlugError(slug, owner_id) from error
        raise error
