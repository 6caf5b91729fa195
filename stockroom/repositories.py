# stockroom/repositories.py

from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from stockroom.core.errors import ProductNotFound, SupplierNotFound, TransactionNotFound
from stockroom.models import Product, Supplier, Transaction


def get_product(db: Session, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(joinedload(Product.supplier))
        .filter(Product.id == product_id)
        .first()
    )
    if product is None:
        raise ProductNotFound()
    return product


def get_product_by_sku(db: Session, sku: str) -> Product | None:
    # Global lookup, inactive products keep their SKU
    return db.query(Product).filter(Product.sku == sku.upper()).first()


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if supplier is None:
        raise SupplierNotFound()
    return supplier


def find_active_supplier_by_name(db: Session, name: str, exclude_id: int | None = None) -> Supplier | None:
    query = db.query(Supplier).filter(
        func.lower(Supplier.name) == name.lower(),
        Supplier.is_active.is_(True),
    )
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    return query.first()


def count_active_products(db: Session, supplier_id: int) -> int:
    return (
        db.query(func.count(Product.id))
        .filter(Product.supplier_id == supplier_id, Product.is_active.is_(True))
        .scalar()
    )


def list_active_products_for_supplier(db: Session, supplier_id: int) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.supplier_id == supplier_id, Product.is_active.is_(True))
        .order_by(Product.name)
        .all()
    )


def get_transaction(db: Session, transaction_id: int) -> Transaction:
    txn = (
        db.query(Transaction)
        .options(joinedload(Transaction.product), joinedload(Transaction.supplier))
        .filter(Transaction.id == transaction_id)
        .first()
    )
    if txn is None:
        raise TransactionNotFound()
    return txn


def get_transaction_by_request_id(db: Session, request_id: str) -> Transaction | None:
    return db.query(Transaction).filter(Transaction.request_id == request_id).first()
