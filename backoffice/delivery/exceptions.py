"""
Exceptions raised by delivery routing.
"""

from stock.exceptions import BusinessException


class InvalidAllocationRequest(BusinessException):
    """Raised when a route allocation request cannot be processed."""

    def __init__(self, message: str, details=None):
        super().__init__(message, "INVALID_ALLOCATION_REQUEST", details)
