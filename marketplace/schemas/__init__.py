# marketplace/schemas/__init__.py
from marketplace.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryInDB,
    CategoryNode,
    CategoryPathItem,
    CategoryWithCounts,
    CategoryResponse,
    IntegrityReport,
)
