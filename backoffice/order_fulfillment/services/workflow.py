"""
Workflow rules for Order Fulfillment.

Manages allowed state transitions for orders, production runs and
packaging tasks. A status may only move to itself when the table lists it
explicitly.
"""

from ..exceptions import InvalidTransitionException
from ..models import OrderStatus, ProductionStatus, PackagingStatus


class StatusWorkflow:
    """Base class: subclasses define ALLOWED_TRANSITIONS and ENTITY_TYPE."""

    ALLOWED_TRANSITIONS = {}
    ENTITY_TYPE = ""

    @classmethod
    def validate_transition(cls, entity, new_status: str) -> None:
        """
        Validate if a status transition is allowed.

        Args:
            entity: Model instance with a ``status`` field
            new_status: New status to transition to

        Raises:
            InvalidTransitionException: If transition is not allowed
        """
        current_status = entity.status
        allowed_transitions = cls.ALLOWED_TRANSITIONS.get(current_status, [])

        if new_status not in allowed_transitions:
            raise InvalidTransitionException(
                current_status=current_status,
                attempted_status=new_status,
                entity_type=cls.ENTITY_TYPE
            )

    @classmethod
    def can_transition_to(cls, entity, new_status: str) -> bool:
        try:
            cls.validate_transition(entity, new_status)
            return True
        except InvalidTransitionException:
            return False


class OrderWorkflow(StatusWorkflow):
    """Workflow rules for Order state transitions."""

    ENTITY_TYPE = "Order"
    ALLOWED_TRANSITIONS = {
        OrderStatus.PENDING: [OrderStatus.IN_PRODUCTION, OrderStatus.IN_PACKAGING, OrderStatus.CANCELLED],
        OrderStatus.IN_PRODUCTION: [OrderStatus.IN_PACKAGING, OrderStatus.CANCELLED],
        OrderStatus.IN_PACKAGING: [OrderStatus.PACKAGED, OrderStatus.CANCELLED],
        OrderStatus.PACKAGED: [OrderStatus.RELEASED_FOR_SALE, OrderStatus.CANCELLED],
        OrderStatus.RELEASED_FOR_SALE: [OrderStatus.SALE_CONFIRMED, OrderStatus.CANCELLED],
        OrderStatus.SALE_CONFIRMED: [OrderStatus.IN_DELIVERY, OrderStatus.CANCELLED],
        OrderStatus.IN_DELIVERY: [OrderStatus.DELIVERED],
        OrderStatus.DELIVERED: [],  # Final state
        OrderStatus.CANCELLED: [],  # Final state
    }


class ProductionRunWorkflow(StatusWorkflow):
    """Workflow rules for ProductionRun state transitions."""

    ENTITY_TYPE = "ProductionRun"
    ALLOWED_TRANSITIONS = {
        ProductionStatus.PENDING: [ProductionStatus.IN_PROGRESS],
        ProductionStatus.IN_PROGRESS: [
            ProductionStatus.COMPLETED, ProductionStatus.APPROVED, ProductionStatus.REJECTED
        ],
        ProductionStatus.COMPLETED: [],  # Final state
        # Re-approval refreshes the packaging task of the run
        ProductionStatus.APPROVED: [ProductionStatus.APPROVED],
        ProductionStatus.REJECTED: [],  # Final state
    }


class PackagingTaskWorkflow(StatusWorkflow):
    """Workflow rules for PackagingTask state transitions."""

    ENTITY_TYPE = "PackagingTask"
    ALLOWED_TRANSITIONS = {
        PackagingStatus.PENDING: [PackagingStatus.IN_PROGRESS, PackagingStatus.COMPLETED],
        PackagingStatus.IN_PROGRESS: [PackagingStatus.IN_PROGRESS, PackagingStatus.COMPLETED],
        PackagingStatus.COMPLETED: [],  # Final state
    }


def validate_order_workflow(order, new_status: str) -> None:
    OrderWorkflow.validate_transition(order, new_status)


def validate_production_workflow(run, new_status: str) -> None:
    ProductionRunWorkflow.validate_transition(run, new_status)


def validate_packaging_workflow(task, new_status: str) -> None:
    PackagingTaskWorkflow.validate_transition(task, new_status)
