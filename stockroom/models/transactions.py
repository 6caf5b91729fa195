# stockroom/models/transactions.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    event,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from stockroom.core.errors import ImmutableRecordError
from stockroom.database import Base

TRANSACTION_TYPES = ("purchase", "sale")
TRANSACTION_STATUSES = ("pending", "completed", "cancelled")


class Transaction(Base):
    """One purchase or sale in the stock ledger.

    Rows are append-only: the ledger inserts them together with the product
    quantity change and nothing updates or deletes them afterwards.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(20), nullable=False, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    customer = Column(String(100), nullable=True)
    invoice_number = Column(String(50), nullable=True)
    notes = Column(String(300), nullable=True)

    status = Column(String(20), nullable=False, default="completed")
    created_by = Column(String, nullable=False, default="system")

    # Optional client key, a retried request returns the first transaction
    request_id = Column(String(64), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    product = relationship("Product")
    supplier = relationship("Supplier")

    __table_args__ = (
        Index("ix_transactions_type_created", "type", "created_at"),
        UniqueConstraint("request_id", name="uq_transactions_request_id"),
        CheckConstraint("type IN ('purchase', 'sale')", name="ck_transaction_type_valid"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_transaction_status_valid",
        ),
        CheckConstraint("quantity >= 1", name="ck_transaction_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_transaction_price_non_negative"),
    )


@event.listens_for(Transaction, "before_update")
def _reject_transaction_update(mapper, connection, target):
    raise ImmutableRecordError(f"Transaction {target.id} is immutable")


@event.listens_for(Transaction, "before_delete")
def _reject_transaction_delete(mapper, connection, target):
    raise ImmutableRecordError(f"Transaction {target.id} cannot be deleted")
