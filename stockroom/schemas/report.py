# schemas/report.py

from pydantic import AliasChoices, BaseModel, Field
from typing import List

from stockroom.schemas.product import ProductResponse
from stockroom.schemas.transaction import TransactionResponse


class DashboardStats(BaseModel):
    total_products: int
    total_suppliers: int
    total_transactions: int
    low_stock_count: int
    total_inventory_value: float


class MonthlyTrend(BaseModel):
    year: int
    month: int
    type: str
    total_amount: float
    count: int


class TopSellingProduct(BaseModel):
    product_id: int
    name: str
    sku: str
    total_sold: int
    revenue: float


class DashboardResponse(BaseModel):
    stats: DashboardStats
    low_stock_products: List[ProductResponse]
    recent_transactions: List[TransactionResponse]
    monthly_trends: List[MonthlyTrend]
    top_selling_products: List[TopSellingProduct]


class ReorderSuggestion(BaseModel):
    # Remote scorers sometimes answer in camelCase
    product_name: str = Field(validation_alias=AliasChoices("product_name", "productName"))
    current_stock: int = Field(ge=0, validation_alias=AliasChoices("current_stock", "currentStock"))
    suggested_quantity: int = Field(
        ge=0, validation_alias=AliasChoices("suggested_quantity", "suggestedQuantity")
    )
    reason: str


class StockLevelRow(BaseModel):
    product_id: int
    name: str
    sku: str
    quantity: int
    min_stock_level: int
    price: float
    value: float
    status: str


class ValueAnalysisRow(BaseModel):
    product_id: int
    name: str
    sku: str
    quantity: int
    price: float
    value: float


class SupplierPerformanceRow(BaseModel):
    supplier_id: int | None
    supplier_name: str | None
    product_count: int
    total_value: float
    avg_price: float


class SupplierStat(BaseModel):
    supplier_id: int | None
    supplier_name: str | None
    product_count: int
    total_value: float
