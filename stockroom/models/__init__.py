from stockroom.models.products import Product, StockStatus, classify_stock_status
from stockroom.models.suppliers import Supplier
from stockroom.models.transactions import Transaction

__all__ = [
    "Product",
    "StockStatus",
    "Supplier",
    "Transaction",
    "classify_stock_status",
]
