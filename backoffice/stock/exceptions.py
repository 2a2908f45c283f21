"""
Exceptions raised by the stock ledger.

``BusinessException`` is the root of every domain error in the project;
other apps derive their own errors from it.
"""

from decimal import Decimal
from typing import Dict, Any


class BusinessException(Exception):
    """Base exception for business logic errors."""

    http_status = 400

    def __init__(self, message: str, code: str = "BUSINESS_ERROR", details: Dict[str, Any] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ProductNotFoundException(BusinessException):
    """Raised when a movement targets a product that does not exist."""

    http_status = 404

    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", "PRODUCT_NOT_FOUND", {
            "product_id": str(product_id),
        })


class InvalidQuantityException(BusinessException):
    """Raised when a movement quantity is zero, negative or malformed."""

    def __init__(self, quantity, reason: str = "Quantity must be greater than zero"):
        super().__init__(f"{reason} (got {quantity})", "INVALID_QUANTITY", {
            "quantity": str(quantity),
        })


class InsufficientStockException(BusinessException):
    """Raised when an outbound movement would drive stock below zero."""

    def __init__(self, product_id, product_name: str, requested: Decimal, available: Decimal):
        shortfall = requested - available
        message = (
            f"Insufficient stock for {product_name}: requested {requested}, "
            f"available {available}, short by {shortfall}"
        )
        super().__init__(message, "INSUFFICIENT_STOCK", {
            "product_id": str(product_id),
            "product_name": product_name,
            "requested_quantity": str(requested),
            "available_quantity": str(available),
            "shortfall": str(shortfall),
        })


class StockConflictException(BusinessException):
    """Raised when the stock value changed between read and write."""

    http_status = 409

    def __init__(self, product_id, expected: Decimal):
        super().__init__(
            f"Stock of product {product_id} changed concurrently (expected {expected})",
            "STOCK_CONFLICT",
            {"product_id": str(product_id), "expected_stock": str(expected)},
        )


class ServiceUnavailableException(BusinessException):
    """Raised when a transient store failure persists after all retries."""

    http_status = 500

    def __init__(self, operation: str, attempts: int):
        super().__init__(
            "The operation could not be completed, please try again later",
            "SERVICE_UNAVAILABLE",
            {"operation": operation, "attempts": attempts},
        )
