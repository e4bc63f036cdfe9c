from .categories import categories_router
from .health import health_router

supplier_routers = [
    ("categories", categories_router),
]

__all__ = ["supplier_routers", "health_router"]
