# wholesale_orders/errors.py

"""
Business errors of the order and receivables core.

Every error carries a machine-readable ``kind`` and a human-readable message;
the HTTP layer turns them into ``{"kind": ..., "detail": ...}`` with ``status_code``.
"""


class OrderError(Exception):
    kind = "order_error"
    status_code = 400

    def __init__(self, message: str, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class ValidationError(OrderError):
    """Bad quantity, price, amount or date; rejected before any write."""
    kind = "validation_error"
    status_code = 422


class NotFound(OrderError):
    kind = "not_found"
    status_code = 404


class InvalidTransition(OrderError):
    kind = "invalid_transition"
    status_code = 409


class Forbidden(OrderError):
    kind = "forbidden"
    status_code = 403


class OrderNotEditable(OrderError):
    kind = "order_not_editable"
    status_code = 409


class OverpaymentRejected(OrderError):
    kind = "overpayment_rejected"
    status_code = 422


class ConcurrentModification(OrderError):
    """Row changed since it was read; re-fetch and retry."""
    kind = "concurrent_modification"
    status_code = 409


class InvalidScheduleParameters(OrderError):
    kind = "invalid_schedule_parameters"
    status_code = 422


class StorageError(OrderError):
    kind = "storage_error"
    status_code = 500
