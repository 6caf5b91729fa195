# stockroom/models/products.py

import enum

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from stockroom.database import Base


class StockStatus(str, enum.Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    MEDIUM_STOCK = "medium_stock"
    IN_STOCK = "in_stock"


def classify_stock_status(quantity: int, min_stock_level: int) -> StockStatus:
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= min_stock_level:
        return StockStatus.LOW_STOCK
    if quantity <= min_stock_level * 2:
        return StockStatus.MEDIUM_STOCK
    return StockStatus.IN_STOCK


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    category = Column(String(50), nullable=True, index=True)

    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=10)

    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    supplier = relationship("Supplier", back_populates="products")

    __table_args__ = (
        Index("ix_products_active_quantity", "is_active", "quantity"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        CheckConstraint("quantity >= 0", name="ck_product_quantity_non_negative"),
        CheckConstraint("min_stock_level >= 0", name="ck_product_min_stock_non_negative"),
    )

    @property
    def stock_status(self) -> StockStatus:
        return classify_stock_status(self.quantity, self.min_stock_level)
