"""
Order Service for Order Fulfillment.

Handles order creation, the stock split when an order is sent to
production, and status moves along the order workflow.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Any

from django.core.exceptions import ValidationError
from django.db import transaction

from products.models import Product
from stock.exceptions import InsufficientStockException, ProductNotFoundException
from stock.models import MovementKind
from stock.services import StockLedger, retry_on_conflict
from ..models import (
    Order, OrderItem, OrderStatus, ProductionRun, ProductionStatus,
    PackagingTask, PackagingStatus, PackagingOrigin, AuditLog,
)
from ..exceptions import InvalidTransitionException, OrderNotFoundException, ValidationException
from .workflow import validate_order_workflow

logger = logging.getLogger(__name__)

# Statuses reached through the generic transition operation; the others
# are set by send_to_production, production, packaging and cancellation.
MANUAL_STATUSES = [
    OrderStatus.RELEASED_FOR_SALE,
    OrderStatus.SALE_CONFIRMED,
    OrderStatus.IN_DELIVERY,
    OrderStatus.DELIVERED,
]


def _decimal(value, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationException(f"{field} must be a number", {field: str(value)})


class OrderService:
    """Service class for order operations."""

    @staticmethod
    def get_order(order_id, lock: bool = False) -> Order:
        """
        Fetch an order, optionally locking its row.

        Raises:
            OrderNotFoundException: If the order does not exist
        """
        queryset = Order.objects.select_for_update() if lock else Order.objects.all()
        try:
            return queryset.get(id=order_id)
        except (Order.DoesNotExist, ValidationError):
            raise OrderNotFoundException(order_id)

    @staticmethod
    def create_order(order_data: Dict[str, Any], created_by=None) -> Order:
        """
        Create a new order with items.

        Args:
            order_data: client_name, delivery_address, notes, metadata and
                items (product_id, quantity, unit_price)
            created_by: User creating the order

        Returns:
            Created Order instance

        Raises:
            ValidationException: If order data is invalid
            ProductNotFoundException: If an item references an unknown product
        """
        items_data = order_data.get('items') or []
        if not items_data:
            raise ValidationException("Order must contain at least one item")
        if not order_data.get('client_name'):
            raise ValidationException("Order needs a client name", {'client_name': 'required'})

        product_ids = [item['product_id'] for item in items_data]
        if len(set(product_ids)) != len(product_ids):
            raise ValidationException("Each product may appear only once per order")

        with transaction.atomic():
            order = Order.objects.create(
                client_name=order_data['client_name'],
                delivery_address=order_data.get('delivery_address', ''),
                notes=order_data.get('notes', ''),
                metadata=order_data.get('metadata', {}),
                created_by=created_by,
                updated_by=created_by,
            )

            total_amount = Decimal('0.00')
            for item_data in items_data:
                try:
                    product = Product.objects.get(pk=item_data['product_id'])
                except Product.DoesNotExist:
                    raise ProductNotFoundException(item_data['product_id'])
                if not product.is_active:
                    raise ValidationException(f"Product {product.name} is not active", {'product_id': product.pk})

                quantity = _decimal(item_data['quantity'], 'quantity')
                unit_price = _decimal(item_data.get('unit_price', '0'), 'unit_price')
                if quantity <= 0:
                    raise ValidationException(f"Quantity of {product.name} must be greater than zero")
                if unit_price < 0:
                    raise ValidationException(f"Unit price of {product.name} cannot be negative")

                item = OrderItem.objects.create(
                    order=order,
                    product=product,
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=unit_price,
                )
                total_amount += item.line_total

            order.total_amount = total_amount
            order.save(update_fields=['total_amount', 'updated_at'])

            AuditLog.log_change(
                entity=order,
                action='created',
                user=created_by,
                new_values={'status': order.status, 'total_amount': total_amount},
                notes=f"Order created with {len(items_data)} items"
            )

        logger.info(f"Order {order.order_number} created for client {order.client_name}")
        return order

    @staticmethod
    def change_status(order: Order, new_status: str, user=None, notes: str = "") -> Order:
        """
        Move a locked order to a new status and audit it.

        Must be called inside the transaction that locked the order.
        """
        validate_order_workflow(order, new_status)

        old_status = order.status
        order.status = new_status
        update_fields = ['status', 'updated_at']
        if user is not None:
            order.updated_by = user
            update_fields.append('updated_by')
        order.save(update_fields=update_fields)

        AuditLog.log_status_change(
            entity=order,
            old_status=old_status,
            new_status=new_status,
            user=user,
            notes=notes
        )
        logger.info(f"Order {order.order_number}: {old_status} -> {new_status}")
        return order

    @staticmethod
    @retry_on_conflict
    def send_to_production(order_id, user=None) -> Dict[str, Any]:
        """
        Split a pending order between stock and production.

        For every line, what stock covers is deducted from the ledger and
        queued for packaging straight away; the shortfall of a manufactured
        product becomes a production run. The order moves to IN_PRODUCTION
        when any run was created, otherwise to IN_PACKAGING.

        Returns:
            Dictionary with the order, created runs and packaging tasks

        Raises:
            OrderNotFoundException: If the order does not exist
            InvalidTransitionException: If the order is not PENDING
            InsufficientStockException: If a product that is not manufactured
                lacks stock; nothing is changed in that case
        """
        with transaction.atomic():
            order = OrderService.get_order(order_id, lock=True)
            if order.status != OrderStatus.PENDING:
                raise InvalidTransitionException(order.status, OrderStatus.IN_PRODUCTION, "Order")

            items = list(order.items.order_by('product_id'))
            products = {
                product.pk: product
                for product in Product.objects.select_for_update().filter(
                    pk__in=[item.product_id for item in items]
                ).order_by('pk')
            }

            plan = []
            for item in items:
                product = products[item.product_id]
                from_stock = min(product.stock, item.quantity)
                shortfall = item.quantity - from_stock
                if shortfall > 0 and not product.is_manufactured:
                    raise InsufficientStockException(
                        product.pk, product.name, requested=item.quantity, available=product.stock
                    )
                plan.append((item, from_stock, shortfall))

            production_runs = []
            packaging_tasks = []
            for item, from_stock, shortfall in plan:
                if from_stock > 0:
                    StockLedger.record_movement(
                        item.product_id,
                        MovementKind.SALE_DEDUCTION,
                        from_stock,
                        reason=f"Stock committed to order {order.order_number}",
                        reference=order,
                        user=user,
                    )
                    packaging_tasks.append(PackagingTask.objects.create(
                        order=order,
                        product_id=item.product_id,
                        product_name=item.product_name,
                        quantity_to_package=from_stock,
                        status=PackagingStatus.PENDING,
                        origin=PackagingOrigin.STOCK,
                    ))
                if shortfall > 0:
                    production_runs.append(ProductionRun.objects.create(
                        order_item=item,
                        product_id=item.product_id,
                        product_name=item.product_name,
                        quantity_requested=shortfall,
                        status=ProductionStatus.PENDING,
                        created_by=user,
                    ))

            new_status = OrderStatus.IN_PRODUCTION if production_runs else OrderStatus.IN_PACKAGING
            OrderService.change_status(
                order, new_status, user,
                notes=f"{len(packaging_tasks)} line(s) from stock, {len(production_runs)} sent to production"
            )

        return {
            'order': order,
            'production_runs': production_runs,
            'packaging_tasks': packaging_tasks,
        }

    @staticmethod
    def transition(order_id, new_status: str, user=None, notes: str = "") -> Order:
        """
        Move an order along the release, sale and delivery steps.

        Raises:
            ValidationException: If the status is unknown or is reached
                through a dedicated operation
            InvalidTransitionException: If the workflow forbids the move
        """
        if new_status not in OrderStatus.values:
            raise ValidationException(f"Unknown order status {new_status}", {'status': new_status})
        if new_status not in MANUAL_STATUSES:
            raise ValidationException(
                f"Orders reach {new_status} through their dedicated operation", {'status': new_status}
            )

        with transaction.atomic():
            order = OrderService.get_order(order_id, lock=True)
            return OrderService.change_status(order, new_status, user, notes)

    @staticmethod
    def advance_after_production(order_id, user=None) -> Order:
        """Move an IN_PRODUCTION order to IN_PACKAGING once all its runs are done."""
        order = OrderService.get_order(order_id, lock=True)
        if order.status != OrderStatus.IN_PRODUCTION:
            return order

        runs = ProductionRun.objects.filter(order_item__order=order)
        finished = [ProductionStatus.APPROVED, ProductionStatus.COMPLETED]
        if runs.exists() and not runs.exclude(status__in=finished).exists():
            OrderService.change_status(order, OrderStatus.IN_PACKAGING, user, notes="All production runs finished")
        return order

    @staticmethod
    def advance_after_packaging(order_id, user=None) -> Order:
        """Move an IN_PACKAGING order to PACKAGED once all its tasks are completed."""
        order = OrderService.get_order(order_id, lock=True)
        if order.status != OrderStatus.IN_PACKAGING:
            return order

        tasks = order.packaging_tasks.all()
        if tasks.exists() and not tasks.exclude(status=PackagingStatus.COMPLETED).exists():
            OrderService.change_status(order, OrderStatus.PACKAGED, user, notes="All packaging tasks completed")
        return order

    @staticmethod
    def get_order_summary(order_id) -> Dict[str, Any]:
        """
        Get comprehensive order summary.

        Returns:
            Order summary with items, production runs and packaging tasks
        """
        order = OrderService.get_order(order_id)

        items_summary = []
        for item in order.items.select_related('product'):
            items_summary.append({
                'id': item.id,
                'product_id': item.product_id,
                'product_name': item.product_name,
                'quantity': item.quantity,
                'unit_price': item.unit_price,
                'line_total': item.line_total,
            })

        return {
            'order': {
                'id': order.id,
                'order_number': order.order_number,
                'status': order.status,
                'client_name': order.client_name,
                'total_amount': order.total_amount,
                'created_at': order.created_at,
            },
            'items': items_summary,
            'production_runs_count': ProductionRun.objects.filter(order_item__order=order).count(),
            'packaging_tasks_count': order.packaging_tasks.count(),
            'packaging_completed_count': order.packaging_tasks.filter(status=PackagingStatus.COMPLETED).count(),
        }
