"""
Production Service for Order Fulfillment.

Drives production runs through PENDING -> IN_PROGRESS -> COMPLETED,
APPROVED or REJECTED. Approval feeds the packaging queue in the same
transaction.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from products.models import Product
from stock.exceptions import InvalidQuantityException, ProductNotFoundException
from stock.models import MovementKind
from stock.services import StockLedger, retry_on_conflict
from ..models import ProductionRun, ProductionStatus, AuditLog
from ..exceptions import ProductionRunNotFoundException, ValidationException
from .order_service import OrderService
from .packaging_service import PackagingService
from .workflow import validate_production_workflow

logger = logging.getLogger(__name__)

FINISH_OUTCOMES = [ProductionStatus.COMPLETED, ProductionStatus.APPROVED, ProductionStatus.REJECTED]


def _get_locked_run(run_id) -> ProductionRun:
    try:
        return ProductionRun.objects.select_for_update(of=('self',)).select_related('order_item').get(pk=run_id)
    except (ProductionRun.DoesNotExist, ValidationError):
        raise ProductionRunNotFoundException(run_id)


def _approved_quantity(run: ProductionRun, supplied: Optional[Decimal]) -> Decimal:
    """Supplied quantity when positive, else what was already recorded, else what was requested."""
    if supplied is not None and supplied > 0:
        return supplied
    if run.quantity_produced:
        return run.quantity_produced
    return run.quantity_requested


class ProductionService:
    """Service class for production operations."""

    @staticmethod
    def create_internal_run(product_id, quantity, user=None, notes: str = "") -> ProductionRun:
        """
        Create a production run that replenishes stock instead of serving an order.

        Raises:
            ProductNotFoundException: If the product does not exist
            ValidationException: If the product is not manufactured in-house
            InvalidQuantityException: If quantity is not positive
        """
        try:
            quantity = Decimal(str(quantity))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidQuantityException(quantity, "Quantity must be a number")
        if not quantity.is_finite() or quantity <= 0:
            raise InvalidQuantityException(quantity)

        try:
            product = Product.objects.get(pk=product_id)
        except Product.DoesNotExist:
            raise ProductNotFoundException(product_id)
        if not product.is_manufactured:
            raise ValidationException(f"{product.name} is not manufactured in-house", {'product_id': product.pk})

        with transaction.atomic():
            run = ProductionRun.objects.create(
                product=product,
                product_name=product.name,
                quantity_requested=quantity,
                notes=notes,
                created_by=user,
            )
            AuditLog.log_change(
                entity=run,
                action='created',
                user=user,
                new_values={'status': run.status, 'quantity_requested': quantity},
                notes="Internal production run"
            )

        logger.info(f"Internal production run {run.production_number} created: {product.name} x {quantity}")
        return run

    @staticmethod
    def start(run_id, user=None) -> ProductionRun:
        """
        Start a pending production run.

        Raises:
            ProductionRunNotFoundException: If the run does not exist
            InvalidTransitionException: If the run is not PENDING
        """
        with transaction.atomic():
            run = _get_locked_run(run_id)
            validate_production_workflow(run, ProductionStatus.IN_PROGRESS)

            old_status = run.status
            run.status = ProductionStatus.IN_PROGRESS
            run.started_at = timezone.now()
            run.save(update_fields=['status', 'started_at', 'updated_at'])

            AuditLog.log_status_change(run, old_status, run.status, user=user, notes="Production started")

        logger.info(f"Production run {run.production_number} started")
        return run

    @staticmethod
    @retry_on_conflict
    def finish(run_id, outcome: str, quantity_produced=None, user=None, notes: str = "") -> ProductionRun:
        """
        Finish a production run as COMPLETED, APPROVED or REJECTED.

        Approval upserts the run's packaging task in the same transaction, so
        a failed upsert rolls the approval back. Approving an already
        approved run re-runs the upsert instead of failing. Internal runs
        also put the approved quantity into stock; a re-approval only moves
        the difference.

        Args:
            run_id: ProductionRun UUID
            outcome: COMPLETED, APPROVED or REJECTED
            quantity_produced: Produced quantity; when missing or zero the
                recorded quantity, then the requested quantity, is used
            user: User finishing the run
            notes: Appended to the run notes

        Returns:
            Updated ProductionRun

        Raises:
            ProductionRunNotFoundException: If the run does not exist
            InvalidTransitionException: If the run cannot reach ``outcome``
            InvalidQuantityException: If quantity_produced is negative
        """
        if outcome not in FINISH_OUTCOMES:
            raise ValidationException(f"Unknown production outcome {outcome}", {'outcome': outcome})

        supplied = None
        if quantity_produced not in (None, ''):
            try:
                supplied = Decimal(str(quantity_produced))
            except (InvalidOperation, TypeError, ValueError):
                raise InvalidQuantityException(quantity_produced, "Produced quantity must be a number")
            if not supplied.is_finite() or supplied < 0:
                raise InvalidQuantityException(quantity_produced, "Produced quantity cannot be negative")

        with transaction.atomic():
            run = _get_locked_run(run_id)
            validate_production_workflow(run, outcome)

            old_status = run.status
            old_quantity = run.quantity_produced
            reapproval = old_status == ProductionStatus.APPROVED
            now = timezone.now()

            if outcome in (ProductionStatus.COMPLETED, ProductionStatus.APPROVED):
                run.quantity_produced = _approved_quantity(run, supplied)
            if not reapproval:
                run.completed_at = now
            if outcome == ProductionStatus.APPROVED:
                run.approved_by = user
                run.approved_at = now
            run.status = outcome
            if notes:
                run.notes = f"{run.notes}\n{notes}" if run.notes else notes
            run.save()

            if outcome == ProductionStatus.APPROVED:
                PackagingService.upsert(run.pk, run.product_id, run.product_name, run.quantity_produced)
                if run.is_internal:
                    ProductionService._record_internal_output(
                        run, old_quantity if reapproval else Decimal('0'), user
                    )

            if reapproval:
                AuditLog.log_change(
                    entity=run,
                    action='reapproved',
                    user=user,
                    old_values={'quantity_produced': old_quantity},
                    new_values={'quantity_produced': run.quantity_produced},
                )
            else:
                AuditLog.log_status_change(run, old_status, outcome, user=user, notes=notes)

            if run.order_item_id and outcome != ProductionStatus.REJECTED:
                OrderService.advance_after_production(run.order_item.order_id, user)
                OrderService.advance_after_packaging(run.order_item.order_id, user)

        logger.info(
            f"Production run {run.production_number} {outcome.lower()} "
            f"({run.quantity_produced} of {run.quantity_requested})"
        )
        return run

    @staticmethod
    def _record_internal_output(run: ProductionRun, already_recorded: Decimal, user=None) -> None:
        difference = run.quantity_produced - (already_recorded or Decimal('0'))
        if difference > 0:
            StockLedger.record_movement(
                run.product_id,
                MovementKind.PRODUCTION_OUTPUT,
                difference,
                reason=f"Output of production {run.production_number}",
                reference=run,
                user=user,
            )
        elif difference < 0:
            StockLedger.record_movement(
                run.product_id,
                MovementKind.ADJUSTMENT,
                -difference,
                reason=f"Production {run.production_number} re-approved with a lower quantity",
                reference=run,
                user=user,
                direction=-1,
            )
