# marketplace/services/category_service.py
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union
from uuid import UUID
from pydantic import BaseModel, ValidationError

from marketplace.core.config import settings
from marketplace.core.exceptions import (
    CategoryNotFoundError,
    CategoryValidationError,
    CycleDetectedError,
    DuplicateSlugError,
    HasDependentsError,
    HierarchyConflictError,
    ParentNotFoundError,
    SlugConflictError,
)
from marketplace.core.logging import get_logger
from marketplace.db.repositories.category_repository import CategoryRepository
from marketplace.schemas.category import (
    CategoryCreate,
    CategoryInDB,
    CategoryNode,
    CategoryPathItem,
    CategoryUpdate,
    CategoryWithCounts,
    IntegrityReport,
)
from marketplace.services.hierarchy import tree
from marketplace.services.hierarchy.cycles import find_cycles, would_create_cycle
from marketplace.services.hierarchy.slugs import SlugAllocator
from marketplace.services.hierarchy.store import CategoryStore

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class CategoryService:
    """
    Service for supplier category hierarchy business logic.

    ``owner_id`` is the supplier the caller has already been authorized to act
    on; every read and write is scoped to it. Validation runs against a
    snapshot fetched at the start of each call, and the store's constraints
    settle the races that snapshot cannot see.
    """

    def __init__(self, db_session=None, store: Optional[CategoryStore] = None):
        self.category_repo = store or CategoryRepository(db_session)
        self.slug_allocator = SlugAllocator(self.category_repo)
        self.max_slug_retries = settings.CATEGORY_SLUG_MAX_RETRIES

    # Reads

    def list_categories(self, owner_id: UUID) -> List[CategoryInDB]:
        """List all categories of a supplier as a flat list"""
        categories = self.category_repo.find_all(owner_id)
        return [CategoryInDB.model_validate(category) for category in categories]

    def get_tree(self, owner_id: UUID) -> List[CategoryNode]:
        """Get the supplier's categories as a forest"""
        logger.info(f"Building category tree for supplier {owner_id}")
        return tree.build_forest(self.category_repo.find_all(owner_id))

    def get_category(self, category_id: UUID, owner_id: UUID) -> CategoryInDB:
        """Get category by ID"""
        return CategoryInDB.model_validate(self._require(category_id, owner_id))

    def get_by_slug(self, slug: str, owner_id: UUID) -> CategoryInDB:
        """Get category by slug"""
        category = self.category_repo.find_by_slug(slug, owner_id)
        if not category:
            raise CategoryNotFoundError(slug)
        return CategoryInDB.model_validate(category)

    def get_path(self, category_id: UUID, owner_id: UUID) -> List[CategoryPathItem]:
        """Get the breadcrumb from the root down to the category"""
        path = tree.get_path(category_id, self.category_repo.find_all(owner_id))
        if not path:
            raise CategoryNotFoundError(category_id)
        return path

    def get_descendant_ids(self, category_id: UUID, owner_id: UUID) -> List[UUID]:
        """Get the ids of every category below this one"""
        categories = self.category_repo.find_all(owner_id)
        self._require_in(category_id, categories)
        return tree.get_descendant_ids(category_id, categories)

    def get_depth(self, category_id: UUID, owner_id: UUID) -> int:
        """Get how many ancestors the category has"""
        categories = self.category_repo.find_all(owner_id)
        self._require_in(category_id, categories)
        return tree.get_depth(category_id, categories)

    def list_root_categories(self, owner_id: UUID) -> List[CategoryInDB]:
        """List categories without a parent"""
        categories = self.category_repo.find_all(owner_id)
        return [
            CategoryInDB.model_validate(category)
            for category in sorted(categories, key=tree.sibling_key)
            if category.parent_id is None
        ]

    def list_subcategories(self, parent_id: UUID, owner_id: UUID) -> List[CategoryInDB]:
        """List direct subcategories of a category"""
        categories = self.category_repo.find_all(owner_id)
        self._require_in(parent_id, categories)
        children = tree.children_index(categories).get(parent_id, [])
        return [CategoryInDB.model_validate(category) for category in children]

    def get_category_with_counts(self, category_id: UUID, owner_id: UUID) -> CategoryWithCounts:
        """Get a category with its product and subcategory counts"""
        category = self._require(category_id, owner_id)
        parent = (
            self.category_repo.find_by_id(category.parent_id, owner_id)
            if category.parent_id
            else None
        )
        return CategoryWithCounts(
            **CategoryInDB.model_validate(category).model_dump(),
            product_count=self.category_repo.count_products(category_id),
            subcategory_count=self.category_repo.count_subcategories(category_id),
            parent_name=parent.name if parent else None,
        )

    def list_categories_with_counts(self, owner_id: UUID) -> List[CategoryWithCounts]:
        """List categories with counts recomputed from the store"""
        categories = self.category_repo.find_all(owner_id)
        product_counts = self.category_repo.count_products_by_category(owner_id)
        child_counts = tree.count_children(categories)
        names = {category.id: category.name for category in categories}

        return [
            CategoryWithCounts(
                **CategoryInDB.model_validate(category).model_dump(),
                product_count=product_counts.get(category.id, 0),
                subcategory_count=child_counts.get(category.id, 0),
                parent_name=names.get(category.parent_id),
            )
            for category in categories
        ]

    def check_integrity(self, owner_id: UUID) -> IntegrityReport:
        """Report stored cycles and parent pointers that lead nowhere"""
        categories = self.category_repo.find_all(owner_id)
        ids = {category.id for category in categories}
        report = IntegrityReport(
            owner_id=owner_id,
            total=len(categories),
            cycles=find_cycles(categories),
            dangling_parents=[
                category.id
                for category in categories
                if category.parent_id is not None and category.parent_id not in ids
            ],
        )
        if not report.ok:
            logger.warning(
                f"Supplier {owner_id} has {len(report.cycles)} cycle(s) and "
                f"{len(report.dangling_parents)} dangling parent reference(s)"
            )
        return report

    # Writes

    def create_category(self, owner_id: UUID, data: Union[CategoryCreate, Dict[str, Any]]) -> CategoryInDB:
        """Create a root category or a subcategory"""
        payload = self._parse(CategoryCreate, data)
        logger.info(f"Creating category '{payload.name}' for supplier {owner_id}")

        if payload.parent_id is not None:
            self._require_parent(payload.parent_id, owner_id)

        values = payload.model_dump(exclude={"slug"})
        values["owner_id"] = owner_id

        category = self._write_with_slug(
            lambda slug: self.category_repo.create({**values, "slug": slug}),
            name=payload.name,
            owner_id=owner_id,
            explicit_slug=payload.slug,
        )

        logger.info(f"Category created: {category.id} ({category.slug})")
        return CategoryInDB.model_validate(category)

    def update_category(
        self, category_id: UUID, owner_id: UUID, patch: Union[CategoryUpdate, Dict[str, Any]]
    ) -> CategoryInDB:
        """
        Update a category.

        A new name regenerates the slug unless one is supplied. A ``parent_id``
        in the patch (None included) re-parents the category.
        """
        payload = self._parse(CategoryUpdate, patch)
        changes = payload.model_dump(exclude_unset=True)
        logger.info(f"Updating category {category_id} for supplier {owner_id}: {sorted(changes)}")

        existing = self._require(category_id, owner_id)

        if "parent_id" in changes:
            self._check_parent(category_id, changes["parent_id"], owner_id)

        explicit_slug = changes.pop("slug", None)
        name_changed = "name" in changes and changes["name"] != existing.name

        if explicit_slug is not None or name_changed:
            category = self._write_with_slug(
                lambda slug: self._store_update(category_id, owner_id, {**changes, "slug": slug}),
                name=changes.get("name", existing.name),
                owner_id=owner_id,
                explicit_slug=explicit_slug,
                exclude_id=category_id,
            )
        else:
            category = self._store_update(category_id, owner_id, changes)

        logger.info(f"Category updated: {category_id}")
        return CategoryInDB.model_validate(category)

    def move_category(self, category_id: UUID, owner_id: UUID, new_parent_id: Optional[UUID]) -> CategoryInDB:
        """Re-parent a category (None moves it to the root level)"""
        logger.info(f"Moving category {category_id} under {new_parent_id} for supplier {owner_id}")

        existing = self._require(category_id, owner_id)
        if existing.parent_id == new_parent_id:
            return CategoryInDB.model_validate(existing)

        self._check_parent(category_id, new_parent_id, owner_id)
        category = self._store_update(category_id, owner_id, {"parent_id": new_parent_id})

        logger.info(f"Category moved: {category_id}")
        return CategoryInDB.model_validate(category)

    def reorder_category(self, category_id: UUID, owner_id: UUID, order: int) -> CategoryInDB:
        """Change the sibling sort position of a category"""
        return self.update_category(category_id, owner_id, {"order": order})

    def activate_category(self, category_id: UUID, owner_id: UUID) -> CategoryInDB:
        """Re-enable a deactivated category"""
        return self.update_category(category_id, owner_id, {"active": True})

    def deactivate_category(self, category_id: UUID, owner_id: UUID) -> CategoryInDB:
        """Soft-disable a category; its position in the tree is kept"""
        return self.update_category(category_id, owner_id, {"active": False})

    def delete_category(self, category_id: UUID, owner_id: UUID, force: bool = False) -> None:
        """
        Delete a category.

        Without ``force`` the deletion is refused while products or
        subcategories reference the category. With ``force`` the whole subtree
        is deleted and the products that referenced any of it lose their
        category, in a single transaction.
        """
        logger.info(f"Deleting category {category_id} for supplier {owner_id} (force={force})")

        self._require(category_id, owner_id)
        products = self.category_repo.count_products(category_id)
        subcategories = self.category_repo.count_subcategories(category_id)

        if not products and not subcategories:
            self.category_repo.delete(category_id, owner_id)
            logger.info(f"Category deleted: {category_id}")
            return

        if not force:
            raise HasDependentsError(category_id, products=products, subcategories=subcategories)

        descendants = tree.get_descendant_ids(category_id, self.category_repo.find_all(owner_id))
        deleted = self.category_repo.delete_subtree([category_id] + descendants, owner_id)
        logger.warning(
            f"Force-deleted category {category_id} with {deleted - 1} descendant(s); "
            f"{products} direct product(s) detached"
        )

    # Helpers

    def _parse(self, schema: Type[SchemaT], data: Union[SchemaT, Dict[str, Any]]) -> SchemaT:
        if isinstance(data, schema):
            return data
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            errors = [
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in e.errors()
            ]
            raise CategoryValidationError("Invalid category data", errors=errors) from e

    def _require(self, category_id: UUID, owner_id: UUID):
        category = self.category_repo.find_by_id(category_id, owner_id)
        if not category:
            raise CategoryNotFoundError(category_id)
        return category

    def _require_in(self, category_id: UUID, categories: List[Any]):
        if not any(category.id == category_id for category in categories):
            raise CategoryNotFoundError(category_id)

    def _require_parent(self, parent_id: UUID, owner_id: UUID):
        parent = self.category_repo.find_by_id(parent_id, owner_id)
        if not parent:
            raise ParentNotFoundError(parent_id)
        return parent

    def _check_parent(self, category_id: UUID, parent_id: Optional[UUID], owner_id: UUID):
        """Parent must exist in the same supplier and must not be a descendant"""
        if parent_id is None:
            return
        if parent_id == category_id:
            raise CycleDetectedError(category_id, parent_id)
        self._require_parent(parent_id, owner_id)
        if would_create_cycle(category_id, parent_id, self.category_repo.find_all(owner_id)):
            raise CycleDetectedError(category_id, parent_id)

    def _store_update(self, category_id: UUID, owner_id: UUID, changes: Dict[str, Any]):
        try:
            category = self.category_repo.update(category_id, owner_id, changes)
        except HierarchyConflictError as e:
            logger.warning(f"Concurrent move rejected at commit: {e}")
            raise CycleDetectedError(e.category_id, e.parent_id) from e
        if not category:
            raise CategoryNotFoundError(category_id)
        return category

    def _write_with_slug(
        self,
        write: Callable[[str], Any],
        name: str,
        owner_id: UUID,
        explicit_slug: Optional[str] = None,
        exclude_id: Optional[UUID] = None,
    ):
        """
        Run ``write`` with a slug, allocating a fresh one each time the store
        reports that a concurrent writer took it. Explicit slugs are never
        re-allocated.
        """
        if explicit_slug is not None:
            holder = self.category_repo.find_by_slug(explicit_slug, owner_id)
            if holder and holder.id != exclude_id:
                raise SlugConflictError(explicit_slug)
            try:
                return write(explicit_slug)
            except DuplicateSlugError as e:
                raise SlugConflictError(explicit_slug) from e

        slug = None
        for attempt in range(self.max_slug_retries + 1):
            slug = self.slug_allocator.allocate(name, owner_id, exclude_id=exclude_id)
            try:
                return write(slug)
            except DuplicateSlugError:
                logger.warning(
                    f"Slug '{slug}' taken concurrently for supplier {owner_id} "
                    f"(attempt {attempt + 1}/{self.max_slug_retries + 1})"
                )
        raise SlugConflictError(slug)
