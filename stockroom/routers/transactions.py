# =========================================================
# TRANSACTIONS ROUTER
#
# Purchases add stock, sales remove it. Creation goes through
# the stock ledger so the transaction row and the quantity
# change commit together. Transactions are never edited or
# deleted once created.
# =========================================================

import math
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session, joinedload

from stockroom.core.dates import end_of_day, start_of_day
from stockroom.core.rate_limiter import limiter
from stockroom.database import get_db
from stockroom.models import Transaction
from stockroom.repositories import get_transaction
from stockroom.schemas.transaction import (
    MonthlyStat,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionSummaryResponse,
)
from stockroom.services.ledger import apply_transaction
from stockroom.services.reporting import monthly_stats, transaction_summary

router = APIRouter(prefix="/transactions", tags=["Transactions"])


# =========================================================
# LIST TRANSACTIONS
# =========================================================
@router.get("", response_model=TransactionListResponse)
def list_transactions(
    db: Session = Depends(get_db),
    type: Optional[Literal["purchase", "sale"]] = Query(None),
    product_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    page: int = Query(1, ge=1),
):
    query = db.query(Transaction)

    if type:
        query = query.filter(Transaction.type == type)

    if product_id is not None:
        query = query.filter(Transaction.product_id == product_id)

    if date_from:
        query = query.filter(Transaction.created_at >= start_of_day(date_from))

    if date_to:
        query = query.filter(Transaction.created_at <= end_of_day(date_to))

    total = query.count()

    transactions = (
        query
        .options(joinedload(Transaction.product), joinedload(Transaction.supplier))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    return {
        "transactions": transactions,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


# =========================================================
# SUMMARY & MONTHLY STATS
# =========================================================
@router.get("/summary", response_model=TransactionSummaryResponse)
def get_transaction_summary(
    db: Session = Depends(get_db),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
):
    return transaction_summary(db, date_from, date_to)


@router.get("/monthly-stats", response_model=list[MonthlyStat])
def get_monthly_stats(db: Session = Depends(get_db)):
    return monthly_stats(db)


# =========================================================
# GET SINGLE TRANSACTION
# =========================================================
@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction_detail(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    return get_transaction(db, transaction_id)


# =========================================================
# CREATE TRANSACTION
# =========================================================
@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_transaction(
    request: Request,
    transaction_data: TransactionCreate,
    db: Session = Depends(get_db),
):
    txn = apply_transaction(
        db,
        transaction_data.type,
        transaction_data.product_id,
        transaction_data.quantity,
        transaction_data.price,
        supplier_id=transaction_data.supplier_id,
        customer=transaction_data.customer,
        invoice_number=transaction_data.invoice_number,
        notes=transaction_data.notes,
        request_id=transaction_data.request_id,
    )

    return get_transaction(db, txn.id)
