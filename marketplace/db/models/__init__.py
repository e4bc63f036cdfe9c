# marketplace/db/models/__init__.py
from marketplace.db.models.supplier import Supplier
from marketplace.db.models.category import Category
from marketplace.db.models.product import Product

__all__ = ["Supplier", "Category", "Product"]
