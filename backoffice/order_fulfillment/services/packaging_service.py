"""
Packaging Service for Order Fulfillment.

Keeps one packaging task per approved production run and records
packaging progress.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Tuple

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from stock.exceptions import InvalidQuantityException
from ..models import PackagingTask, PackagingStatus, PackagingOrigin, ProductionRun, AuditLog
from ..exceptions import PackagingTaskNotFoundException, ProductionRunNotFoundException
from .order_service import OrderService
from .workflow import validate_packaging_workflow

logger = logging.getLogger(__name__)


def _positive(quantity) -> Decimal:
    try:
        value = Decimal(str(quantity))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidQuantityException(quantity, "Quantity must be a number")
    if not value.is_finite() or value <= 0:
        raise InvalidQuantityException(quantity)
    return value


class PackagingService:
    """Service class for packaging operations."""

    @staticmethod
    def upsert(production_run_id, product_id, product_name: str, quantity) -> Tuple[PackagingTask, bool]:
        """
        Create or refresh the packaging task of a production run.

        An existing task gets the new quantity and goes back to PENDING, or
        to COMPLETED when what was already packaged covers it. A
        concurrent creator losing the unique constraint race falls back to
        updating the task the winner created.

        Args:
            production_run_id: ProductionRun UUID
            product_id: Product primary key
            product_name: Product name shown on the task
            quantity: Quantity to package

        Returns:
            Tuple of (task, created)
        """
        quantity = _positive(quantity)

        with transaction.atomic():
            task = PackagingTask.objects.select_for_update().filter(production_run_id=production_run_id).first()
            created = False

            if task is None:
                try:
                    run = ProductionRun.objects.select_related('order_item').get(pk=production_run_id)
                except (ProductionRun.DoesNotExist, ValidationError):
                    raise ProductionRunNotFoundException(production_run_id)
                try:
                    with transaction.atomic():
                        task = PackagingTask.objects.create(
                            production_run=run,
                            order_id=run.order_item.order_id if run.order_item_id else None,
                            product_id=product_id,
                            product_name=product_name,
                            quantity_to_package=quantity,
                            quantity_packaged=Decimal('0'),
                            status=PackagingStatus.PENDING,
                            origin=PackagingOrigin.PRODUCTION,
                        )
                    created = True
                except IntegrityError:
                    logger.warning(f"Packaging task for run {production_run_id} created concurrently, updating it")
                    task = PackagingTask.objects.select_for_update().get(production_run_id=production_run_id)

            if not created:
                # Packaged quantity never exceeds the corrected quantity.
                task.quantity_packaged = min(task.quantity_packaged, quantity)
                task.quantity_to_package = quantity
                task.product_name = product_name
                if task.quantity_packaged >= quantity:
                    task.status = PackagingStatus.COMPLETED
                    task.packaged_at = task.packaged_at or timezone.now()
                else:
                    task.status = PackagingStatus.PENDING
                    task.packaged_at = None
                task.save(update_fields=[
                    'quantity_to_package', 'quantity_packaged', 'product_name', 'status',
                    'packaged_at', 'updated_at',
                ])

        logger.info(
            f"Packaging task {task.packaging_number} {'created' if created else 'updated'}: "
            f"{product_name} x {quantity}"
        )
        return task, created

    @staticmethod
    def record_packaged(task_id, quantity, user=None) -> PackagingTask:
        """
        Add packaged quantity to a task.

        The task completes when everything is packaged; an order in
        IN_PACKAGING moves to PACKAGED once all its tasks are completed.

        Raises:
            PackagingTaskNotFoundException: If the task does not exist
            InvalidTransitionException: If the task is already completed
            InvalidQuantityException: If more than the remaining quantity
                is recorded
        """
        quantity = _positive(quantity)

        with transaction.atomic():
            try:
                task = PackagingTask.objects.select_for_update().get(pk=task_id)
            except (PackagingTask.DoesNotExist, ValidationError):
                raise PackagingTaskNotFoundException(task_id)

            packaged = task.quantity_packaged + quantity
            new_status = (
                PackagingStatus.COMPLETED if packaged >= task.quantity_to_package else PackagingStatus.IN_PROGRESS
            )
            validate_packaging_workflow(task, new_status)
            if packaged > task.quantity_to_package:
                raise InvalidQuantityException(
                    quantity, f"Only {task.remaining_to_package} left to package on {task.packaging_number}"
                )

            old_status = task.status
            task.quantity_packaged = packaged
            task.status = new_status
            if new_status == PackagingStatus.COMPLETED:
                task.packaged_at = timezone.now()
            task.save(update_fields=['quantity_packaged', 'status', 'packaged_at', 'updated_at'])

            if old_status != new_status:
                AuditLog.log_status_change(
                    entity=task,
                    old_status=old_status,
                    new_status=new_status,
                    user=user,
                    notes=f"{packaged} of {task.quantity_to_package} packaged"
                )

            if task.order_id and new_status == PackagingStatus.COMPLETED:
                OrderService.advance_after_packaging(task.order_id, user)

        logger.info(f"Packaging task {task.packaging_number}: {task.quantity_packaged}/{task.quantity_to_package}")
        return task
