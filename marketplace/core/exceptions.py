"""Error taxonomy for the category hierarchy.

Service errors carry a stable ``code`` and the HTTP ``status_code`` the
transport layer should answer with. Store errors are raised by repositories
and translated by the service.
"""
from typing import Any, Dict, List, Optional
from uuid import UUID


class CategoryError(Exception):
    """Base class for failures raised by CategoryService"""

    code = "CATEGORY_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class CategoryNotFoundError(CategoryError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, category_id: Any):
        # Only the requested id is echoed back, never tenant details
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class ParentNotFoundError(CategoryError):
    code = "PARENT_NOT_FOUND"
    status_code = 422

    def __init__(self, parent_id: Any):
        super().__init__(f"Parent category {parent_id} not found")
        self.parent_id = parent_id


class CycleDetectedError(CategoryError):
    code = "CYCLE_DETECTED"
    status_code = 409

    def __init__(self, category_id: Any, parent_id: Any):
        super().__init__(
            f"Moving category {category_id} under {parent_id} would create a circular reference"
        )
        self.category_id = category_id
        self.parent_id = parent_id


class SlugConflictError(CategoryError):
    code = "SLUG_CONFLICT"
    status_code = 409

    def __init__(self, slug: str):
        super().__init__(f"A category with slug '{slug}' already exists")
        self.slug = slug

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["slug"] = self.slug
        return payload


class HasDependentsError(CategoryError):
    code = "HAS_DEPENDENTS"
    status_code = 409

    def __init__(self, category_id: Any, products: int, subcategories: int):
        super().__init__(
            f"Category {category_id} has {products} product(s) and "
            f"{subcategories} subcategory(ies); remove them or force the deletion"
        )
        self.category_id = category_id
        self.products = products
        self.subcategories = subcategories

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["products"] = self.products
        payload["subcategories"] = self.subcategories
        return payload


class CategoryValidationError(CategoryError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class StoreError(Exception):
    """Failure reported by a CategoryStore implementation"""


class DuplicateSlugError(StoreError):
    """The (owner_id, slug) uniqueness constraint rejected a write"""

    def __init__(self, slug: str, owner_id: Optional[UUID] = None):
        super().__init__(f"Slug '{slug}' is already taken")
        self.slug = slug
        self.owner_id = owner_id


class HierarchyConflictError(StoreError):
    """The ancestor chain re-read at commit time contains the moved category"""

    def __init__(self, category_id: UUID, parent_id: UUID):
        super().__init__(f"Category {category_id} is an ancestor of {parent_id}")
        self.category_id = category_id
        self.parent_id = parent_id
