# marketplace/services/hierarchy/store.py
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID


class CategoryStore(ABC):
    """
    Persistence gateway the category service depends on.

    Every lookup is scoped by ``owner_id``; a category of another supplier is
    reported exactly like a missing one. Implementations enforce
    (owner_id, slug) uniqueness by raising ``DuplicateSlugError`` and re-check
    the ancestor chain when ``parent_id`` changes, raising
    ``HierarchyConflictError`` when the write would close a cycle.
    """

    @abstractmethod
    def find_all(self, owner_id: UUID) -> List[Any]:
        """All categories of a supplier ordered by (order, name)"""

    @abstractmethod
    def find_by_id(self, category_id: UUID, owner_id: UUID) -> Optional[Any]:
        """Category by ID within the supplier"""

    @abstractmethod
    def find_by_slug(self, slug: str, owner_id: UUID) -> Optional[Any]:
        """Category by slug within the supplier"""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Any:
        """Persist a new category from a dict of column values"""

    @abstractmethod
    def update(self, category_id: UUID, owner_id: UUID, patch: Dict[str, Any]) -> Optional[Any]:
        """Apply ``patch`` to a category, returning None if it does not exist"""

    @abstractmethod
    def delete(self, category_id: UUID, owner_id: UUID) -> bool:
        """Delete a single category"""

    @abstractmethod
    def count_products(self, category_id: UUID) -> int:
        """Products referencing the category"""

    @abstractmethod
    def count_subcategories(self, category_id: UUID) -> int:
        """Direct children of the category"""

    @abstractmethod
    def count_products_by_category(self, owner_id: UUID) -> Dict[UUID, int]:
        """Product count per category id for a supplier"""

    @abstractmethod
    def delete_subtree(self, category_ids: Sequence[UUID], owner_id: UUID) -> int:
        """
        Atomically delete the given categories and clear the category
        reference on their products. Returns the number of deleted rows.
        """
