# stockroom/routers/suppliers.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from stockroom.core.errors import ConflictFailed
from stockroom.database import get_db
from stockroom.models import Supplier
from stockroom.repositories import (
    count_active_products,
    find_active_supplier_by_name,
    get_supplier,
    list_active_products_for_supplier,
)
from stockroom.schemas.product import ProductBrief
from stockroom.schemas.report import SupplierStat
from stockroom.schemas.supplier import (
    SupplierCreate,
    SupplierUpdate,
    SupplierResponse,
    SupplierDetailResponse,
)
from stockroom.services.reporting import supplier_stats

router = APIRouter(
    prefix="/suppliers",
    tags=["Suppliers"],
)

logger = logging.getLogger("stockroom")


def _with_count(db: Session, supplier: Supplier) -> SupplierResponse:
    response = SupplierResponse.model_validate(supplier)
    response.products_count = count_active_products(db, supplier.id)
    return response


@router.get("", response_model=list[SupplierResponse])
def list_suppliers(
    db: Session = Depends(get_db),
    search: Optional[str] = Query(None),
):
    query = db.query(Supplier).filter(Supplier.is_active.is_(True))

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Supplier.name.ilike(pattern),
                Supplier.contact_person.ilike(pattern),
                Supplier.email.ilike(pattern),
            )
        )

    suppliers = query.order_by(Supplier.created_at.desc(), Supplier.id.desc()).all()

    return [_with_count(db, s) for s in suppliers]


@router.get("/stats", response_model=list[SupplierStat])
def get_supplier_stats(db: Session = Depends(get_db)):
    return supplier_stats(db)


@router.get("/{supplier_id}", response_model=SupplierDetailResponse)
def get_supplier_detail(
    supplier_id: int,
    db: Session = Depends(get_db),
):
    supplier = get_supplier(db, supplier_id)
    products = list_active_products_for_supplier(db, supplier_id)

    detail = SupplierDetailResponse.model_validate(supplier)
    detail.products = [ProductBrief.model_validate(p) for p in products]
    detail.products_count = len(products)

    return detail


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db),
):
    if find_active_supplier_by_name(db, supplier_data.name):
        raise ConflictFailed(
            "Supplier with this name already exists",
            details={"name": supplier_data.name},
        )

    supplier = Supplier(**supplier_data.model_dump())

    db.add(supplier)
    db.commit()
    db.refresh(supplier)

    logger.info(f"Supplier {supplier.id} created")

    return _with_count(db, supplier)


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    supplier_data: SupplierUpdate,
    db: Session = Depends(get_db),
):
    supplier = get_supplier(db, supplier_id)

    if supplier_data.name.lower() != supplier.name.lower():
        if find_active_supplier_by_name(db, supplier_data.name, exclude_id=supplier_id):
            raise ConflictFailed(
                "Supplier with this name already exists",
                details={"name": supplier_data.name},
            )

    for field, value in supplier_data.model_dump().items():
        setattr(supplier, field, value)

    db.commit()
    db.refresh(supplier)

    return _with_count(db, supplier)


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
):
    supplier = get_supplier(db, supplier_id)

    products_count = count_active_products(db, supplier_id)

    if products_count > 0:
        raise ConflictFailed(
            "Cannot delete supplier with associated products. "
            "Please remove or reassign products first.",
            details={"products_count": products_count},
        )

    # Soft delete - mark as inactive
    supplier.is_active = False
    db.commit()

    logger.info(f"Supplier {supplier_id} deactivated")

    return {"message": "Supplier deleted successfully"}
