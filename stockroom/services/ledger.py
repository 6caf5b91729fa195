# =========================================================
# STOCK LEDGER
#
# A purchase or sale is one unit of work:
# - validate input and resolve the product (row locked)
# - move product.quantity with a guarded UPDATE
#   (sales only match rows that still hold enough stock)
# - insert the transaction with total = quantity x price
# - commit, or roll everything back
# =========================================================

import logging
from decimal import Decimal, InvalidOperation
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from stockroom.core.errors import (
    ConflictFailed,
    InsufficientStock,
    ProductNotFound,
    StockroomError,
    StorageFailure,
    ValidationFailed,
)
from stockroom.models import Product, Transaction
from stockroom.models.transactions import TRANSACTION_TYPES
from stockroom.repositories import get_supplier, get_transaction_by_request_id

logger = logging.getLogger("stockroom")


def _validate_request(transaction_type: str, quantity: int, unit_price) -> Decimal:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationFailed(
            "Transaction type must be 'purchase' or 'sale'",
            details={"type": transaction_type},
        )

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationFailed(
            "Quantity must be at least 1",
            details={"quantity": quantity},
        )

    try:
        price = Decimal(str(unit_price))
    except (InvalidOperation, TypeError):
        raise ValidationFailed("Price must be a number", details={"price": unit_price})

    if price < 0:
        raise ValidationFailed("Price cannot be negative", details={"price": unit_price})

    return price


def _replay(existing: Transaction, transaction_type: str, product_id: int, quantity: int) -> Transaction:
    if (
        existing.type != transaction_type
        or existing.product_id != product_id
        or existing.quantity != quantity
    ):
        raise ConflictFailed(
            "request_id was already used for a different transaction",
            details={"request_id": existing.request_id},
        )

    logger.info(f"Replaying transaction {existing.id} for request_id {existing.request_id}")
    return existing


def apply_transaction(
    db: Session,
    transaction_type: str,
    product_id: int,
    quantity: int,
    unit_price,
    *,
    supplier_id: int | None = None,
    customer: str | None = None,
    invoice_number: str | None = None,
    notes: str | None = None,
    request_id: str | None = None,
) -> Transaction:
    """Apply one purchase or sale to a product's stock.

    Either the transaction row exists and the product quantity reflects it,
    or neither change is visible. Raises ValidationFailed, ProductNotFound,
    SupplierNotFound, InsufficientStock or StorageFailure.

    When ``request_id`` is given, a retry of an already committed request
    returns the original transaction without touching stock again.
    """
    price = _validate_request(transaction_type, quantity, unit_price)

    # ===============================
    # IDEMPOTENCY CHECK
    # ===============================
    if request_id:
        existing = get_transaction_by_request_id(db, request_id)
        if existing:
            return _replay(existing, transaction_type, product_id, quantity)

    try:
        product = (
            db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .first()
        )

        if not product:
            raise ProductNotFound(details={"product_id": product_id})

        if supplier_id is not None:
            get_supplier(db, supplier_id)

        delta = quantity if transaction_type == "purchase" else -quantity

        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(quantity=Product.quantity + delta)
            .execution_options(synchronize_session=False)
        )

        if transaction_type == "sale":
            stmt = stmt.where(Product.quantity >= quantity)

        result = db.execute(stmt)

        if result.rowcount == 0:
            available = (
                db.query(Product.quantity)
                .filter(Product.id == product_id)
                .scalar()
            )
            raise InsufficientStock(product_id, available or 0, quantity)

        txn = Transaction(
            type=transaction_type,
            product_id=product_id,
            supplier_id=supplier_id,
            quantity=quantity,
            price=price,
            total_amount=price * quantity,
            customer=customer,
            invoice_number=invoice_number,
            notes=notes,
            status="completed",
            request_id=request_id,
        )
        db.add(txn)
        db.commit()

    except InsufficientStock as exc:
        db.rollback()
        logger.warning(
            f"Sale rejected for product {product_id}: "
            f"available {exc.available}, requested {exc.requested}"
        )
        raise

    except StockroomError:
        db.rollback()
        raise

    except IntegrityError:
        db.rollback()
        # Lost a race against the same request_id, return the winner
        if request_id:
            existing = get_transaction_by_request_id(db, request_id)
            if existing:
                return _replay(existing, transaction_type, product_id, quantity)
        logger.exception(f"Integrity error applying {transaction_type} for product {product_id}")
        raise StorageFailure()

    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Storage error applying {transaction_type} for product {product_id}")
        raise StorageFailure()

    db.refresh(txn)

    logger.info(
        f"Transaction {txn.id} applied: {transaction_type} {quantity} x product {product_id} "
        f"total {txn.total_amount}"
    )

    return txn


def find_low_stock_products(db: Session, limit: int | None = None) -> List[Product]:
    """Active products at or below their minimum stock level, lowest first."""
    query = (
        db.query(Product)
        .options(joinedload(Product.supplier))
        .filter(
            Product.is_active.is_(True),
            Product.quantity <= Product.min_stock_level,
        )
        .order_by(Product.quantity.asc(), Product.id.asc())
    )

    if limit is not None:
        query = query.limit(limit)

    return query.all()
