"""
Custom exceptions for the Order Fulfillment module.
"""

from typing import Dict, Any

from stock.exceptions import BusinessException


class OrderNotFoundException(BusinessException):
    """Raised when an order does not exist."""

    http_status = 404

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found", "ORDER_NOT_FOUND", {"order_id": str(order_id)})


class ProductionRunNotFoundException(BusinessException):
    """Raised when a production run does not exist."""

    http_status = 404

    def __init__(self, run_id):
        super().__init__(
            f"Production run {run_id} not found", "PRODUCTION_RUN_NOT_FOUND", {"production_run_id": str(run_id)}
        )


class PackagingTaskNotFoundException(BusinessException):
    """Raised when a packaging task does not exist."""

    http_status = 404

    def __init__(self, task_id):
        super().__init__(
            f"Packaging task {task_id} not found", "PACKAGING_TASK_NOT_FOUND", {"packaging_task_id": str(task_id)}
        )


class InvalidTransitionException(BusinessException):
    """Raised when attempting an invalid workflow transition."""

    def __init__(self, current_status: str, attempted_status: str, entity_type: str = "order"):
        message = f"Invalid transition for {entity_type}: cannot move from {current_status} to {attempted_status}"
        super().__init__(message, "INVALID_TRANSITION", {
            "current_status": current_status,
            "attempted_status": attempted_status,
            "entity_type": entity_type
        })


class AlreadyCancelledException(BusinessException):
    """Raised when cancelling an order that is already cancelled."""

    def __init__(self, order_number: str):
        super().__init__(f"Order {order_number} is already cancelled", "ALREADY_CANCELLED", {
            "order_number": order_number,
        })


class NotCancellableException(BusinessException):
    """Raised when an order is out for delivery or delivered."""

    def __init__(self, order_number: str, status: str):
        super().__init__(
            f"Order {order_number} cannot be cancelled while {status}",
            "NOT_CANCELLABLE",
            {"order_number": order_number, "status": status},
        )


class ValidationException(BusinessException):
    """Raised when data validation fails."""

    def __init__(self, message: str, field_errors: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", field_errors or {})


__all__ = [
    'BusinessException', 'OrderNotFoundException', 'ProductionRunNotFoundException',
    'PackagingTaskNotFoundException', 'InvalidTransitionException', 'AlreadyCancelledException',
    'NotCancellableException', 'ValidationException',
]
