"""Exceptions raised by the shop when running in strict mode."""

from __future__ import annotations


class ShopError(Exception):
    """Base exception for all shop errors."""

    pass


class OperationRejectedError(ShopError):
    """Raised when a guarded operation refuses its input."""

    def __init__(self, operation: str, reason: str | None = None):
        self.operation = operation
        self.reason = reason
        msg = f"Operation rejected: {operation}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class InvalidTransitionError(OperationRejectedError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, entity: str, current: str, requested: str):
        self.entity = entity
        self.current = current
        self.requested = requested
        super().__init__(
            f"{entity}.update_status",
            f"cannot move from '{current}' to '{requested}'",
        )
