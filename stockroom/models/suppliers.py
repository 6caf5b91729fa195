# stockroom/models/suppliers.py

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from stockroom.database import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)

    contact_person = Column(String(100), nullable=True)
    email = Column(String, nullable=True, index=True)
    phone = Column(String(20), nullable=True)
    address = Column(String(300), nullable=True)
    website = Column(String(200), nullable=True)
    tax_id = Column(String(50), nullable=True)
    payment_terms = Column(String(100), nullable=True)
    rating = Column(Integer, nullable=True)
    notes = Column(String(500), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    products = relationship("Product", back_populates="supplier")

    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_supplier_rating_range"),
    )
