from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import List

from stockroom.schemas.product import ProductBrief


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    contact_person: str | None = Field(None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    address: str | None = Field(None, max_length=300)
    website: str | None = Field(None, max_length=200)
    tax_id: str | None = Field(None, max_length=50)
    payment_terms: str | None = Field(None, max_length=100)
    rating: int | None = Field(None, ge=1, le=5)
    notes: str | None = Field(None, max_length=500)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value):
        return value.lower() if value else value

    class Config:
        str_strip_whitespace = True


class SupplierUpdate(SupplierCreate):
    pass


class SupplierResponse(BaseModel):
    id: int
    name: str
    contact_person: str | None
    email: str | None
    phone: str | None
    address: str | None
    website: str | None
    tax_id: str | None
    payment_terms: str | None
    rating: int | None
    notes: str | None
    is_active: bool
    created_at: datetime
    products_count: int = 0

    class Config:
        from_attributes = True


class SupplierDetailResponse(SupplierResponse):
    products: List[ProductBrief] = []
