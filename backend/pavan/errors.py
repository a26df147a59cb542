# Overview: Application error taxonomy shared by services and routes.

from __future__ import annotations


class AppError(Exception):
    """Base for errors that map to a JSON error response."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": str(self)}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError, ValueError):
    """Missing or malformed input."""


class OutOfStockError(AppError):
    """Product has no stock on hand."""


class InsufficientStockError(AppError):
    """Requested quantity exceeds stock on hand."""


class EmptyCartError(AppError):
    """Checkout attempted with no cart lines."""


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409


class DataUnavailableError(AppError):
    """A backing collection could not be read; no partial results."""
    status_code = 503
