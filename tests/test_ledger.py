"""
Stock ledger: applying purchases and sales to product quantity.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func
from sqlalchemy.exc import OperationalError

from stockroom.core.errors import (
    ConflictFailed,
    ImmutableRecordError,
    InsufficientStock,
    ProductNotFound,
    StorageFailure,
    SupplierNotFound,
    ValidationFailed,
)
from stockroom.models import Product, StockStatus, Transaction, classify_stock_status
from stockroom.services.ledger import apply_transaction, find_low_stock_products


def _quantity(session_factory, product_id):
    session = session_factory()
    try:
        return session.get(Product, product_id).quantity
    finally:
        session.close()


def _transaction_count(session_factory):
    session = session_factory()
    try:
        return session.query(func.count(Transaction.id)).scalar()
    finally:
        session.close()


class TestStockStatus:

    @pytest.mark.parametrize(
        "quantity, min_stock_level, expected",
        [
            (0, 10, StockStatus.OUT_OF_STOCK),
            (5, 10, StockStatus.LOW_STOCK),
            (10, 10, StockStatus.LOW_STOCK),
            (15, 10, StockStatus.MEDIUM_STOCK),
            (20, 10, StockStatus.MEDIUM_STOCK),
            (25, 10, StockStatus.IN_STOCK),
            (0, 0, StockStatus.OUT_OF_STOCK),
            (1, 0, StockStatus.IN_STOCK),
        ],
    )
    def test_classification(self, quantity, min_stock_level, expected):
        assert classify_stock_status(quantity, min_stock_level) == expected

    def test_product_property_tracks_quantity(self, make_product):
        product = make_product(quantity=15, min_stock_level=10)
        assert product.stock_status == StockStatus.MEDIUM_STOCK

        product.quantity = 0
        assert product.stock_status == StockStatus.OUT_OF_STOCK


class TestApplySale:

    def test_sale_decreases_quantity_and_computes_total(self, db, session_factory, make_product):
        product = make_product(quantity=40)

        txn = apply_transaction(db, "sale", product.id, 7, Decimal("3.25"))

        assert txn.id is not None
        assert txn.type == "sale"
        assert txn.status == "completed"
        assert txn.total_amount == Decimal("22.75")
        assert _quantity(session_factory, product.id) == 33

    def test_sale_of_entire_stock_is_allowed(self, db, session_factory, make_product):
        product = make_product(quantity=12)

        apply_transaction(db, "sale", product.id, 12, "1.00")

        assert _quantity(session_factory, product.id) == 0

    def test_insufficient_stock_changes_nothing(self, db, session_factory, make_product):
        product = make_product(quantity=4)

        with pytest.raises(InsufficientStock) as exc_info:
            apply_transaction(db, "sale", product.id, 5, "2.00")

        assert exc_info.value.available == 4
        assert exc_info.value.requested == 5
        assert exc_info.value.details == {"product_id": product.id, "available": 4, "requested": 5}
        assert _quantity(session_factory, product.id) == 4
        assert _transaction_count(session_factory) == 0

    def test_scenario_sell_down_then_reject(self, db, session_factory, make_product):
        product = make_product(sku="ABC", quantity=100, min_stock_level=10, price=Decimal("5"))

        txn = apply_transaction(db, "sale", product.id, 95, "5")

        assert txn.total_amount == Decimal("475")
        db.expire_all()
        refreshed = db.get(Product, product.id)
        assert refreshed.quantity == 5
        assert refreshed.stock_status == StockStatus.LOW_STOCK

        with pytest.raises(InsufficientStock):
            apply_transaction(db, "sale", product.id, 10, "5")

        assert _quantity(session_factory, product.id) == 5
        assert _transaction_count(session_factory) == 1


class TestApplyPurchase:

    @pytest.mark.parametrize("starting", [0, 3, 250])
    def test_purchase_increases_quantity(self, db, session_factory, make_product, starting):
        product = make_product(quantity=starting)

        txn = apply_transaction(db, "purchase", product.id, 20, "4.10")

        assert txn.total_amount == Decimal("82.00")
        assert _quantity(session_factory, product.id) == starting + 20

    def test_purchase_records_metadata(self, db, make_product, make_supplier):
        supplier = make_supplier(name="Acme")
        product = make_product(quantity=0)

        txn = apply_transaction(
            db,
            "purchase",
            product.id,
            5,
            "10.00",
            supplier_id=supplier.id,
            invoice_number="INV-001",
            notes="first delivery",
        )

        assert txn.supplier_id == supplier.id
        assert txn.invoice_number == "INV-001"
        assert txn.notes == "first delivery"
        assert txn.created_by == "system"


class TestPreconditions:

    def test_missing_product(self, db):
        with pytest.raises(ProductNotFound):
            apply_transaction(db, "sale", 9999, 1, "1.00")

    def test_missing_supplier_rolls_back(self, db, session_factory, make_product):
        product = make_product(quantity=10)

        with pytest.raises(SupplierNotFound):
            apply_transaction(db, "purchase", product.id, 1, "1.00", supplier_id=424242)

        assert _quantity(session_factory, product.id) == 10
        assert _transaction_count(session_factory) == 0

    @pytest.mark.parametrize(
        "transaction_type, quantity, price",
        [
            ("refund", 1, "1.00"),
            ("sale", 0, "1.00"),
            ("sale", -3, "1.00"),
            ("sale", True, "1.00"),
            ("purchase", 1, "-0.01"),
            ("purchase", 1, "abc"),
        ],
    )
    def test_invalid_input(self, db, make_product, transaction_type, quantity, price):
        product = make_product()

        with pytest.raises(ValidationFailed):
            apply_transaction(db, transaction_type, product.id, quantity, price)


class TestIdempotentRetry:

    def test_same_request_id_applies_once(self, db, session_factory, make_product):
        product = make_product(quantity=10)

        first = apply_transaction(db, "sale", product.id, 3, "2.00", request_id="req-1")
        second = apply_transaction(db, "sale", product.id, 3, "2.00", request_id="req-1")

        assert second.id == first.id
        assert _quantity(session_factory, product.id) == 7
        assert _transaction_count(session_factory) == 1

    def test_request_id_reused_for_different_transaction(self, db, make_product):
        product = make_product(quantity=10)
        apply_transaction(db, "sale", product.id, 3, "2.00", request_id="req-2")

        with pytest.raises(ConflictFailed):
            apply_transaction(db, "purchase", product.id, 3, "2.00", request_id="req-2")


class TestStorageFailure:

    def test_commit_failure_leaves_no_trace(self, db, session_factory, make_product, monkeypatch):
        product = make_product(quantity=10)

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", failing_commit)

        with pytest.raises(StorageFailure):
            apply_transaction(db, "sale", product.id, 3, "2.00")

        assert _quantity(session_factory, product.id) == 10
        assert _transaction_count(session_factory) == 0


class TestTransactionImmutability:

    def test_update_is_rejected(self, db, make_product):
        product = make_product()
        txn = apply_transaction(db, "sale", product.id, 1, "5.00")

        txn.notes = "edited"
        with pytest.raises(ImmutableRecordError):
            db.commit()
        db.rollback()

    def test_delete_is_rejected(self, db, make_product):
        product = make_product()
        txn = apply_transaction(db, "sale", product.id, 1, "5.00")

        db.delete(txn)
        with pytest.raises(ImmutableRecordError):
            db.commit()
        db.rollback()


class TestLowStockQuery:

    def test_only_active_products_at_or_below_minimum(self, db, make_product):
        empty = make_product(quantity=0, min_stock_level=5)
        at_min = make_product(quantity=5, min_stock_level=5)
        make_product(quantity=6, min_stock_level=5)
        make_product(quantity=1, min_stock_level=5, is_active=False)

        low = find_low_stock_products(db)

        assert [p.id for p in low] == [empty.id, at_min.id]
