from marketplace.db.repositories.supplier_repository import SupplierRepository
from marketplace.db.repositories.category_repository import CategoryRepository

__all__ = [
    "SupplierRepository",
    "CategoryRepository",
]
