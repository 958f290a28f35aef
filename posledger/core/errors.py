from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for failures raised by the catalog and the sale ledger."""

    kind = "ledger_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.detail}


class ValidationError(LedgerError):
    """Malformed or out-of-range input. Caller's fault, never retried."""

    kind = "validation_error"


class InsufficientStock(LedgerError):
    """A sale asks for more units of a product than are in stock."""

    kind = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            product_id=self.product_id,
            requested=self.requested,
            available=self.available,
        )
        return data


class StorageUnavailable(LedgerError):
    """
    Transient storage failure (timeout, lost connection, driver error).

    Every operation is atomic, so retrying the whole call is safe. The
    original exception is kept as ``__cause__``.
    """

    kind = "storage_unavailable"

    def __init__(self, detail: str = "Storage unavailable", operation: Optional[str] = None) -> None:
        super().__init__(detail)
        self.operation = operation
