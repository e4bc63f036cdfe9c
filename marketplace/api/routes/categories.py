"""Supplier API for category hierarchy management"""
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from marketplace.core.dependencies import SupplierId, get_category_service
from marketplace.schemas.category import (
    CategoryCreate,
    CategoryNode,
    CategoryPathItem,
    CategoryResponse,
    CategoryWithCounts,
    IntegrityReport,
)
from marketplace.services.category_service import CategoryService


# Request models
class MoveRequest(BaseModel):
    parent_id: Optional[UUID] = None


class ReorderRequest(BaseModel):
    order: int


categories_router = APIRouter()


@categories_router.get("/categories", response_model=List[CategoryWithCounts])
async def list_categories(
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    """List the supplier's categories with product and subcategory counts"""
    return service.list_categories_with_counts(supplier_id)


@categories_router.get(
    "/categories/tree",
    response_model=List[CategoryNode],
    response_model_by_alias=True,
)
async def get_category_tree(
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    """Get the supplier's categories as a tree"""
    return service.get_tree(supplier_id)


@categories_router.get("/categories/integrity", response_model=IntegrityReport)
async def check_category_integrity(
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    """Report stored cycles and dangling parent references"""
    return service.check_integrity(supplier_id)


@categories_router.get("/categories/slug/{slug}", response_model=CategoryResponse)
async def get_category_by_slug(
    slug: str,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    return service.get_by_slug(slug, supplier_id)


@categories_router.get("/categories/{category_id}", response_model=CategoryWithCounts)
async def get_category(
    category_id: UUID,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    return service.get_category_with_counts(category_id, supplier_id)


@categories_router.get("/categories/{category_id}/path", response_model=List[CategoryPathItem])
async def get_category_path(
    category_id: UUID,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    """Breadcrumb from the root down to the category"""
    return service.get_path(category_id, supplier_id)


@categories_router.get("/categories/{category_id}/subcategories", response_model=List[CategoryResponse])
async def list_subcategories(
    category_id: UUID,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    return service.list_subcategories(category_id, supplier_id)


@categories_router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    data: dict,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    """
    Create a category.

    The body is validated by the service so malformed input surfaces as a
    VALIDATION_ERROR like every other category failure.
    """
    return service.create_category(supplier_id, data)


@categories_router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    data: dict,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    return service.update_category(category_id, supplier_id, data)


@categories_router.post("/categories/{category_id}/move", response_model=CategoryResponse)
async def move_category(
    category_id: UUID,
    data: MoveRequest,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    """Re-parent a category; a null parent_id moves it to the root level"""
    return service.move_category(category_id, supplier_id, data.parent_id)


@categories_router.post("/categories/{category_id}/order", response_model=CategoryResponse)
async def reorder_category(
    category_id: UUID,
    data: ReorderRequest,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    return service.reorder_category(category_id, supplier_id, data.order)


@categories_router.post("/categories/{category_id}/deactivate", response_model=CategoryResponse)
async def deactivate_category(
    category_id: UUID,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    return service.deactivate_category(category_id, supplier_id)


@categories_router.post("/categories/{category_id}/activate", response_model=CategoryResponse)
async def activate_category(
    category_id: UUID,
    supplier_id: SupplierId,
    service: CategoryService = Depends(get_category_service),
):
    return service.activate_category(category_id, supplier_id)


@categories_router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID,
    supplier_id: SupplierId,
    force: bool = Query(False, description="Delete subcategories and detach products"),
    service: CategoryService = Depends(get_category_service),
):
    """Delete a category; refused with HAS_DEPENDENTS unless forced"""
    service.delete_category(category_id, supplier_id, force=force)
