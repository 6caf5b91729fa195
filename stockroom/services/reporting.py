# =========================================================
# REPORTING
#
# Read-only rollups for the dashboard, inventory reports and
# transaction summaries. Money is summed as Decimal and
# rounded to 2 places at the edge.
# =========================================================

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import desc, extract, func
from sqlalchemy.orm import Session, joinedload

from stockroom.core.dates import end_of_day, months_ago, start_of_day
from stockroom.core.errors import UnsupportedReportType
from stockroom.models import Product, Supplier, Transaction, classify_stock_status
from stockroom.services.ledger import find_low_stock_products

TWO_PLACES = Decimal("0.01")

REPORT_TYPES = ("stock_levels", "value_analysis", "supplier_performance")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(TWO_PLACES)


def _active_products(db: Session):
    return db.query(Product).filter(Product.is_active.is_(True))


# =========================================================
# DASHBOARD
# =========================================================
def total_inventory_value(db: Session) -> Decimal:
    value = (
        db.query(func.coalesce(func.sum(Product.quantity * Product.price), 0))
        .filter(Product.is_active.is_(True))
        .scalar()
    )
    return _money(value)


def monthly_trends(db: Session, months: int = 6) -> list[dict]:
    since = months_ago(datetime.now(timezone.utc), months)

    year = extract("year", Transaction.created_at).label("year")
    month = extract("month", Transaction.created_at).label("month")

    rows = (
        db.query(
            year,
            month,
            Transaction.type,
            func.coalesce(func.sum(Transaction.total_amount), 0).label("total_amount"),
            func.count(Transaction.id).label("count"),
        )
        .filter(Transaction.created_at >= since)
        .group_by(year, month, Transaction.type)
        .order_by(year.asc(), month.asc(), Transaction.type.asc())
        .all()
    )

    return [
        {
            "year": int(row.year),
            "month": int(row.month),
            "type": row.type,
            "total_amount": _money(row.total_amount),
            "count": row.count,
        }
        for row in rows
    ]


def top_selling_products(db: Session, limit: int = 5) -> list[dict]:
    total_sold = func.sum(Transaction.quantity)

    rows = (
        db.query(
            Product.id.label("product_id"),
            Product.name,
            Product.sku,
            total_sold.label("total_sold"),
            func.coalesce(func.sum(Transaction.total_amount), 0).label("revenue"),
        )
        .join(Transaction, Transaction.product_id == Product.id)
        .filter(Transaction.type == "sale")
        .group_by(Product.id, Product.name, Product.sku)
        .order_by(total_sold.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "name": row.name,
            "sku": row.sku,
            "total_sold": int(row.total_sold),
            "revenue": _money(row.revenue),
        }
        for row in rows
    ]


def dashboard_stats(db: Session) -> dict:
    total_products = _active_products(db).count()

    total_suppliers = (
        db.query(func.count(Supplier.id))
        .filter(Supplier.is_active.is_(True))
        .scalar()
    )

    total_transactions = db.query(func.count(Transaction.id)).scalar()

    low_stock_count = (
        _active_products(db)
        .filter(Product.quantity <= Product.min_stock_level)
        .count()
    )

    recent_transactions = (
        db.query(Transaction)
        .options(joinedload(Transaction.product), joinedload(Transaction.supplier))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(5)
        .all()
    )

    return {
        "stats": {
            "total_products": total_products,
            "total_suppliers": total_suppliers,
            "total_transactions": total_transactions,
            "low_stock_count": low_stock_count,
            "total_inventory_value": total_inventory_value(db),
        },
        "low_stock_products": find_low_stock_products(db, limit=10),
        "recent_transactions": recent_transactions,
        "monthly_trends": monthly_trends(db),
        "top_selling_products": top_selling_products(db),
    }


# =========================================================
# INVENTORY REPORTS
# =========================================================
def _stock_levels(db: Session) -> list[dict]:
    products = _active_products(db).order_by(Product.quantity.asc(), Product.id.asc()).all()

    return [
        {
            "product_id": p.id,
            "name": p.name,
            "sku": p.sku,
            "quantity": p.quantity,
            "min_stock_level": p.min_stock_level,
            "price": _money(p.price),
            "value": _money(p.price * p.quantity),
            "status": classify_stock_status(p.quantity, p.min_stock_level).value,
        }
        for p in products
    ]


def _value_analysis(db: Session) -> list[dict]:
    rows = [
        {
            "product_id": p.id,
            "name": p.name,
            "sku": p.sku,
            "quantity": p.quantity,
            "price": _money(p.price),
            "value": _money(p.price * p.quantity),
        }
        for p in _active_products(db).all()
    ]

    return sorted(rows, key=lambda row: (-row["value"], row["product_id"]))


def _supplier_rollup(db: Session, with_avg_price: bool):
    total_value = func.coalesce(func.sum(Product.quantity * Product.price), 0)
    product_count = func.count(Product.id)

    columns = [
        Product.supplier_id.label("supplier_id"),
        Supplier.name.label("supplier_name"),
        product_count.label("product_count"),
        total_value.label("total_value"),
    ]
    if with_avg_price:
        columns.append(func.avg(Product.price).label("avg_price"))

    return (
        db.query(*columns)
        .outerjoin(Supplier, Product.supplier_id == Supplier.id)
        .filter(Product.is_active.is_(True))
        .group_by(Product.supplier_id, Supplier.name)
    )


def _supplier_performance(db: Session) -> list[dict]:
    rows = (
        _supplier_rollup(db, with_avg_price=True)
        .order_by(desc("total_value"))
        .all()
    )

    return [
        {
            "supplier_id": row.supplier_id,
            "supplier_name": row.supplier_name,
            "product_count": row.product_count,
            "total_value": _money(row.total_value),
            "avg_price": _money(row.avg_price),
        }
        for row in rows
    ]


_REPORTS = {
    "stock_levels": _stock_levels,
    "value_analysis": _value_analysis,
    "supplier_performance": _supplier_performance,
}


def inventory_report(db: Session, report_type: Optional[str]) -> list[dict]:
    builder = _REPORTS.get(report_type)

    if builder is None:
        raise UnsupportedReportType(report_type)

    return builder(db)


def supplier_stats(db: Session) -> list[dict]:
    rows = (
        _supplier_rollup(db, with_avg_price=False)
        .order_by(desc("product_count"))
        .all()
    )

    return [
        {
            "supplier_id": row.supplier_id,
            "supplier_name": row.supplier_name,
            "product_count": row.product_count,
            "total_value": _money(row.total_value),
        }
        for row in rows
    ]


# =========================================================
# TRANSACTION SUMMARIES
# =========================================================
def transaction_summary(
    db: Session,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    query = db.query(
        Transaction.type,
        func.count(Transaction.id).label("total_transactions"),
        func.coalesce(func.sum(Transaction.total_amount), 0).label("total_amount"),
        func.coalesce(func.sum(Transaction.quantity), 0).label("total_quantity"),
    )

    if date_from:
        query = query.filter(Transaction.created_at >= start_of_day(date_from))
    if date_to:
        query = query.filter(Transaction.created_at <= end_of_day(date_to))

    rows = {row.type: row for row in query.group_by(Transaction.type).all()}

    def _totals(transaction_type: str) -> dict:
        row = rows.get(transaction_type)
        if row is None:
            return {"total_transactions": 0, "total_amount": _money(0), "total_quantity": 0}
        return {
            "total_transactions": row.total_transactions,
            "total_amount": _money(row.total_amount),
            "total_quantity": int(row.total_quantity),
        }

    purchases = _totals("purchase")
    sales = _totals("sale")

    return {
        "purchases": purchases,
        "sales": sales,
        "gross_profit": sales["total_amount"] - purchases["total_amount"],
    }


def monthly_stats(db: Session, limit: int = 24) -> list[dict]:
    year = extract("year", Transaction.created_at).label("year")
    month = extract("month", Transaction.created_at).label("month")

    rows = (
        db.query(
            year,
            month,
            Transaction.type,
            func.coalesce(func.sum(Transaction.total_amount), 0).label("total_amount"),
            func.count(Transaction.id).label("count"),
        )
        .group_by(year, month, Transaction.type)
        .order_by(year.desc(), month.desc(), Transaction.type.asc())
        .limit(limit)
        .all()
    )

    return [
        {
            "year": int(row.year),
            "month": int(row.month),
            "type": row.type,
            "total_amount": _money(row.total_amount),
            "count": row.count,
        }
        for row in rows
    ]
