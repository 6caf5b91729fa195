"""
Typed errors for the stockroom API.

Every error carries a machine-readable ``kind`` and the HTTP status it maps
to, so routers and services raise by type and ``stockroom.main`` renders one
JSON shape for all of them:

    {"message": "...", "kind": "insufficient_stock", "details": {...}}

    StockroomError
    +-- ValidationFailed
    |   +-- UnsupportedReportType
    +-- NotFound
    |   +-- ProductNotFound
    |   +-- SupplierNotFound
    |   +-- TransactionNotFound
    +-- ConflictFailed
    +-- InsufficientStock
    +-- StorageFailure
    +-- ExternalServiceFailure
    +-- ImmutableRecordError
"""

from fastapi import status


class StockroomError(Exception):
    kind = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


# =========================================================
# CALLER ERRORS
# =========================================================
class ValidationFailed(StockroomError):
    kind = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation error"


class UnsupportedReportType(ValidationFailed):
    default_message = "Invalid report type"

    def __init__(self, report_type: str | None):
        super().__init__(details={"report_type": report_type})
        self.report_type = report_type


class NotFound(StockroomError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ProductNotFound(NotFound):
    default_message = "Product not found"


class SupplierNotFound(NotFound):
    default_message = "Supplier not found"


class TransactionNotFound(NotFound):
    default_message = "Transaction not found"


class ConflictFailed(StockroomError):
    kind = "conflict"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Conflict with existing data"


class InsufficientStock(StockroomError):
    kind = "insufficient_stock"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}",
            details={
                "product_id": product_id,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


# =========================================================
# INFRASTRUCTURE ERRORS
# =========================================================
class StorageFailure(StockroomError):
    """The unit of work was rolled back. Safe to retry."""

    kind = "storage_failure"
    default_message = "Unable to complete the operation, please retry"


class ExternalServiceFailure(StockroomError):
    """Remote reorder scorer was unreachable or returned unusable output."""

    kind = "external_service_failure"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "External service unavailable"


class ImmutableRecordError(StockroomError):
    kind = "immutable_record"
    default_message = "Record cannot be modified"
