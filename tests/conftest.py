# tests/conftest.py
import pytest
import os
import sys
import tempfile
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Tests run against an in-memory SQLite database, never the configured one
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MULTI_TENANT_MODE"] = "true"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="marketplace-logs-"))

# Add project root to Python path
project_root = Path(__file__).parent.parent.absolute()
sys.path.insert(0, str(project_root))

from marketplace.db.base import Base
from marketplace.db import models  # noqa: F401
from marketplace.db.models import Category, Product
from marketplace.db.repositories.supplier_repository import SupplierRepository
from marketplace.services.category_service import CategoryService


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with a fresh schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a test database session."""
    Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = Session()

    yield session

    session.close()


@pytest.fixture(scope="function")
def supplier(db_session):
    """The supplier most tests act on."""
    return SupplierRepository(db_session).create("Distribuidora Acme")


@pytest.fixture(scope="function")
def other_supplier(db_session):
    """A second tenant, used to check isolation."""
    return SupplierRepository(db_session).create("Atacado Beta")


@pytest.fixture(scope="function")
def category_service(db_session):
    """Create a category service for testing."""
    return CategoryService(db_session)


@pytest.fixture(scope="function")
def chain(category_service, supplier):
    """Categories A -> B -> C (C's parent is B, B's parent is A)."""
    a = category_service.create_category(supplier.id, {"name": "Alimentos"})
    b = category_service.create_category(supplier.id, {"name": "Bebidas", "parent_id": a.id})
    c = category_service.create_category(supplier.id, {"name": "Cervejas", "parent_id": b.id})
    return a, b, c


@pytest.fixture(scope="function")
def add_product(db_session):
    """Factory inserting a product that references a category."""
    def _add_product(owner_id, category_id, name="Produto"):
        product = Product(owner_id=owner_id, category_id=category_id, name=name)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _add_product


@pytest.fixture(scope="function")
def raw_category(db_session):
    """Factory inserting a category row directly, bypassing the service."""
    def _raw_category(owner_id, name, slug, parent_id=None, order=0):
        category = Category(owner_id=owner_id, name=name, slug=slug, parent_id=parent_id, order=order)
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _raw_category
