from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from stockroom.models.products import StockStatus


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    sku: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=500)

    price: Decimal = Field(
        ...,
        ge=0,
        lt=100_000_000,
        description="Unit price, must be below 100 million"
    )

    quantity: int = Field(0, ge=0)
    min_stock_level: int = Field(10, ge=0)
    supplier_id: int | None = None
    category: str | None = Field(None, max_length=50)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, value: str) -> str:
        return value.upper()

    class Config:
        str_strip_whitespace = True


# Full replacement, same rules as create
class ProductUpdate(ProductCreate):
    pass


class SupplierSummary(BaseModel):
    id: int
    name: str
    contact_person: str | None = None

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    description: str | None
    price: float
    quantity: int
    min_stock_level: int
    category: str | None
    supplier_id: int | None
    supplier: SupplierSummary | None = None
    is_active: bool
    stock_status: StockStatus
    created_at: datetime

    class Config:
        from_attributes = True


class ProductBrief(BaseModel):
    id: int
    name: str
    sku: str
    quantity: int
    price: float

    class Config:
        from_attributes = True
