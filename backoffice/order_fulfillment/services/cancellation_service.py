"""
Cancellation Service for Order Fulfillment.

Cancelling an order returns every line item to stock through the ledger
and marks the order cancelled, all in one transaction.
"""

import logging
from typing import Dict, Any

from django.db import transaction
from django.utils import timezone

from stock.models import MovementKind
from stock.services import StockLedger, retry_on_conflict
from ..models import OrderStatus, AuditLog
from ..exceptions import AlreadyCancelledException, NotCancellableException
from .order_service import OrderService
from .workflow import validate_order_workflow

logger = logging.getLogger(__name__)

NOT_CANCELLABLE_STATUSES = [OrderStatus.IN_DELIVERY, OrderStatus.DELIVERED]


class CancellationService:
    """Compensates the stock effects of an order when it is cancelled."""

    @staticmethod
    @retry_on_conflict
    def cancel_order(order_id, reason: str = "", user=None) -> Dict[str, Any]:
        """
        Cancel an order and restock its line items.

        The order row is locked first, so of two concurrent cancellations
        the second sees CANCELLED and fails without touching stock.

        Args:
            order_id: Order UUID
            reason: Optional cancellation reason
            user: User cancelling the order

        Returns:
            Dictionary with success, message, stock_updates_count and
            stock_movements_count

        Raises:
            OrderNotFoundException: If the order does not exist
            AlreadyCancelledException: If the order is already cancelled
            NotCancellableException: If the order is in delivery or delivered
        """
        reason = (reason or "").strip()

        with transaction.atomic():
            order = OrderService.get_order(order_id, lock=True)

            if order.status == OrderStatus.CANCELLED:
                raise AlreadyCancelledException(order.order_number)
            if order.status in NOT_CANCELLABLE_STATUSES:
                raise NotCancellableException(order.order_number, order.status)
            validate_order_workflow(order, OrderStatus.CANCELLED)

            restock_reason = f"Restock for cancellation of order {order.order_number}"
            if reason:
                restock_reason = f"{restock_reason} - {reason}"

            # Products are locked in ascending pk order
            movements = []
            for item in order.items.order_by('product_id'):
                movements.append(StockLedger.record_movement(
                    item.product_id,
                    MovementKind.CANCELLATION_RESTORE,
                    item.quantity,
                    reason=restock_reason,
                    reference=order,
                    user=user,
                ))

            stamp = timezone.localtime().strftime('%Y-%m-%d %H:%M:%S')
            note = f"Cancelled on {stamp}"
            if reason:
                note = f"{note} - Reason: {reason}"
            order.notes = f"{order.notes}\n{note}" if order.notes else note

            old_status = order.status
            order.status = OrderStatus.CANCELLED
            order.updated_by = user
            order.save(update_fields=['status', 'notes', 'updated_by', 'updated_at'])

            AuditLog.log_status_change(
                entity=order,
                old_status=old_status,
                new_status=OrderStatus.CANCELLED,
                user=user,
                notes=note
            )

        logger.info(
            f"Order {order.order_number} cancelled by {user}: {len(movements)} line(s) restocked"
        )
        return {
            'success': True,
            'message': f"Order {order.order_number} cancelled",
            'stock_updates_count': len({movement.product_id for movement in movements}),
            'stock_movements_count': len(movements),
        }
