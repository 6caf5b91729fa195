# stockroom/routers/products.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from stockroom.core.errors import ConflictFailed
from stockroom.database import get_db
from stockroom.models import Product, StockStatus
from stockroom.repositories import get_product, get_product_by_sku, get_supplier
from stockroom.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from stockroom.services.ledger import find_low_stock_products

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)

logger = logging.getLogger("stockroom")


@router.get("", response_model=list[ProductResponse])
def list_products(
    db: Session = Depends(get_db),
    search: Optional[str] = Query(None),
    supplier_id: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    stock_status: Optional[StockStatus] = Query(None),
):
    query = (
        db.query(Product)
        .options(joinedload(Product.supplier))
        .filter(Product.is_active.is_(True))
    )

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Product.name.ilike(pattern),
                Product.sku.ilike(pattern),
                Product.description.ilike(pattern),
            )
        )

    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)

    if category:
        query = query.filter(Product.category == category)

    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()

    # Derived field, filtered after load
    if stock_status:
        products = [p for p in products if p.stock_status == stock_status]

    return products


@router.get("/low-stock", response_model=list[ProductResponse])
def low_stock_products(db: Session = Depends(get_db)):
    return find_low_stock_products(db)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product_detail(
    product_id: int,
    db: Session = Depends(get_db),
):
    return get_product(db, product_id)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
):
    # SKU is unique across all products, inactive ones included
    if get_product_by_sku(db, product_data.sku):
        raise ConflictFailed("SKU already exists", details={"sku": product_data.sku})

    if product_data.supplier_id is not None:
        get_supplier(db, product_data.supplier_id)

    product = Product(**product_data.model_dump())

    try:
        db.add(product)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictFailed("SKU already exists", details={"sku": product_data.sku})

    logger.info(f"Product {product.id} created with SKU {product.sku}")

    return get_product(db, product.id)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
):
    product = get_product(db, product_id)

    if product_data.sku != product.sku:
        conflict = get_product_by_sku(db, product_data.sku)
        if conflict and conflict.id != product.id:
            raise ConflictFailed("SKU already exists", details={"sku": product_data.sku})

    if product_data.supplier_id is not None:
        get_supplier(db, product_data.supplier_id)

    for field, value in product_data.model_dump().items():
        setattr(product, field, value)

    db.commit()

    return get_product(db, product_id)


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
):
    product = get_product(db, product_id)

    # Soft delete, transactions keep referencing the row
    product.is_active = False
    db.commit()

    logger.info(f"Product {product_id} deactivated")

    return {"message": "Product deleted successfully"}
