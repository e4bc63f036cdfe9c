# Supplier routers (tenant-scoped CRUD)
from .routes import supplier_routers, health_router

__all__ = ["supplier_routers", "health_router"]
