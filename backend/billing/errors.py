# Overview: Typed billing errors; each kind maps to one transport status code.

from __future__ import annotations


class BillingError(Exception):
    """Base class for billing operation errors."""

    kind = "BillingError"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "kind": self.kind,
            "details": self.details,
        }


class NotFoundError(BillingError):
    """Product, customer, invoice or rule does not exist."""

    kind = "NotFound"
    status_code = 404


class InsufficientStockError(BillingError):
    kind = "InsufficientStock"
    status_code = 409


class CreditLimitExceededError(BillingError):
    kind = "CreditLimitExceeded"
    status_code = 409


class UnauthorizedError(BillingError):
    """Entity belongs to a different account."""

    kind = "Unauthorized"
    status_code = 403


class ValidationError(BillingError, ValueError):
    """400-level input problem."""

    kind = "Validation"
    status_code = 400
