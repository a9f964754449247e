"""Typed errors raised by the stock ledger.

Every error carries a machine-readable ``code`` plus the structured fields the
caller needs to build a user-facing message. ``to_dict`` is what the HTTP
layer sends back.
"""


class LedgerError(Exception):
    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(LedgerError):
    """Caller-correctable input problem. Nothing was changed."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict:
        return {**super().to_dict(), "field": self.field, "reason": self.reason}


class NotFoundError(LedgerError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "id": self.product_id}


class InsufficientStockError(LedgerError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, requested: int, available: int):
        super().__init__(f"Insufficient stock. Requested: {requested}, available: {available}")
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        return {**super().to_dict(), "requested": self.requested, "available": self.available}


class PersistenceError(LedgerError):
    """Storage failed. After a failed save the in-memory state has already changed."""

    code = "PERSISTENCE_ERROR"

    def __init__(self, key: str, reason: str, operation: str = "save"):
        super().__init__(f"Could not {operation} '{key}': {reason}")
        self.operation = operation
        self.key = key
        self.reason = reason

    def to_dict(self) -> dict:
        return {**super().to_dict(), "key": self.key, "operation": self.operation}


class ImportFormatError(LedgerError):
    code = "IMPORT_FORMAT_ERROR"

    def __init__(self, reason: str):
        super().__init__(f"Invalid snapshot: {reason}")
        self.reason = reason
