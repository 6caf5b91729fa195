"""
Pytest fixtures for the stockroom test suite.

Provides:
- A fresh SQLite file database per test (file based so that several
  threads can hold their own connections in the concurrency tests)
- Session fixtures and a FastAPI TestClient bound to that database
- Small factories for suppliers, products and historical transactions
"""

import itertools
import os
import tempfile

# Settings are read at import time, point them somewhere harmless first
_TEST_DIR = tempfile.mkdtemp(prefix="stockroom-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'app.db')}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GEMINI_API_KEY"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from stockroom.database import Base, build_engine, get_db
from stockroom.models import Product, Supplier, Transaction


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'stockroom.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from stockroom.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_supplier(db):
    counter = itertools.count(1)

    def _make(**overrides) -> Supplier:
        n = next(counter)
        data = {"name": f"Supplier {n}", "contact_person": f"Contact {n}"}
        data.update(overrides)
        supplier = Supplier(**data)
        db.add(supplier)
        db.commit()
        db.refresh(supplier)
        return supplier

    return _make


@pytest.fixture
def make_product(db):
    counter = itertools.count(1)

    def _make(**overrides) -> Product:
        n = next(counter)
        data = {
            "sku": f"SKU-{n:03d}",
            "name": f"Product {n}",
            "price": Decimal("5.00"),
            "quantity": 100,
            "min_stock_level": 10,
        }
        data.update(overrides)
        product = Product(**data)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def record_transaction(db):
    """Insert a ledger row directly, e.g. to backdate history for reports."""

    def _record(product, type="sale", quantity=1, price=None, created_at=None) -> Transaction:
        unit_price = Decimal(str(price)) if price is not None else Decimal(str(product.price))
        txn = Transaction(
            type=type,
            product_id=product.id,
            quantity=quantity,
            price=unit_price,
            total_amount=unit_price * quantity,
            status="completed",
        )
        if created_at is not None:
            txn.created_at = created_at
        db.add(txn)
        db.commit()
        db.refresh(txn)
        return txn

    return _record
