# schemas/transaction.py

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Literal
from decimal import Decimal


class TransactionCreate(BaseModel):
    type: Literal["purchase", "sale"]
    product_id: int
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, lt=100_000_000)
    # Accepted for compatibility, the ledger always recomputes it
    total_amount: Decimal | None = Field(None, ge=0)
    supplier_id: int | None = None
    customer: str | None = Field(None, max_length=100)
    invoice_number: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=300)
    request_id: str | None = Field(None, max_length=64)

    @field_validator("type", mode="before")
    @classmethod
    def lowercase_type(cls, value):
        return value.lower() if isinstance(value, str) else value

    class Config:
        str_strip_whitespace = True


class TransactionProduct(BaseModel):
    id: int
    name: str
    sku: str

    class Config:
        from_attributes = True


class TransactionSupplier(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    id: int
    type: str
    product_id: int
    product: TransactionProduct | None = None
    supplier_id: int | None
    supplier: TransactionSupplier | None = None
    quantity: int
    price: float
    total_amount: float
    customer: str | None
    invoice_number: str | None
    notes: str | None
    status: str
    created_by: str
    request_id: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    pagination: Pagination


class TypeTotals(BaseModel):
    total_transactions: int = 0
    total_amount: float = 0
    total_quantity: int = 0


class TransactionSummaryResponse(BaseModel):
    purchases: TypeTotals
    sales: TypeTotals
    gross_profit: float


class MonthlyStat(BaseModel):
    year: int
    month: int
    type: str
    total_amount: float
    count: int
