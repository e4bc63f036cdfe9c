from typing import Annotated
from uuid import UUID
from fastapi import Request, HTTPException, status, Depends
from sqlalchemy.orm import Session

from marketplace.core.config import settings
from marketplace.core.logging import get_logger
from marketplace.db.base import SessionLocal
from marketplace.db.repositories.supplier_repository import SupplierRepository
from marketplace.services.category_service import CategoryService

logger = get_logger(__name__)


def get_db():
    """FastAPI dependency for database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    """Get category service bound to the request's DB session"""
    return CategoryService(db)


async def get_supplier_context(
    request: Request,
    db: Session = Depends(get_db)
) -> UUID:
    """
    Resolve the supplier the request is entitled to act on.

    Authentication upstream stores the supplier in ``request.state``; when it
    did not, multi-tenant mode reads the X-Supplier-Id header (or the Host
    subdomain) and single-tenant mode uses DEFAULT_SUPPLIER_ID.
    """
    if hasattr(request.state, "supplier_id"):
        return request.state.supplier_id

    if not settings.MULTI_TENANT_MODE:
        if not settings.DEFAULT_SUPPLIER_ID:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="DEFAULT_SUPPLIER_ID is not configured"
            )
        return UUID(settings.DEFAULT_SUPPLIER_ID)

    supplier_repo = SupplierRepository(db)
    supplier_header = request.headers.get("x-supplier-id", "")
    if supplier_header:
        try:
            supplier = supplier_repo.get_by_id(UUID(supplier_header))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="X-Supplier-Id must be a UUID"
            )
    else:
        # Fall back to the Host subdomain, e.g. acme.marketplace.example:8000
        host_parts = request.headers.get("host", "").split(":")[0].split(".")
        if len(host_parts) < 2:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Supplier context required"
            )
        supplier = supplier_repo.get_by_subdomain(host_parts[0].lower())

    if not supplier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Supplier not found"
        )

    logger.info(f"Supplier context resolved: {supplier.name} (ID: {supplier.id})")
    return supplier.id


# Type alias for dependency injection
SupplierId = Annotated[UUID, Depends(get_supplier_context)]
