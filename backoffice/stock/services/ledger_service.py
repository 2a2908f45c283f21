"""
Stock ledger service.

Every change to a product's on-hand stock goes through StockLedger, which
applies the change and appends the matching StockMovement row in a single
transaction.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple, Union

from django.db import models, transaction
from django.utils import timezone

from products.models import Product
from ..exceptions import (
    InsufficientStockException, InvalidQuantityException,
    ProductNotFoundException, StockConflictException,
)
from ..models import KIND_DIRECTIONS, MovementKind, StockMovement
from .retry import retry_on_conflict

logger = logging.getLogger(__name__)

QUANTITY_PLACES = 3

Reference = Union[models.Model, Tuple[str, str], None]


def _to_quantity(value) -> Decimal:
    try:
        quantity = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidQuantityException(value, "Quantity must be a number")
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidQuantityException(value)
    if quantity.as_tuple().exponent < -QUANTITY_PLACES:
        raise InvalidQuantityException(value, f"Quantity allows at most {QUANTITY_PLACES} decimal places")
    return quantity


def _resolve_reference(reference: Reference) -> Tuple[str, str]:
    if reference is None:
        return "", ""
    if isinstance(reference, models.Model):
        return reference.__class__.__name__.lower(), str(reference.pk)
    reference_type, reference_id = reference
    return str(reference_type), str(reference_id)


def _resolve_direction(kind: str, direction: Optional[int]) -> int:
    if kind not in KIND_DIRECTIONS:
        raise InvalidQuantityException(kind, f"Unknown movement kind {kind}")
    fixed = KIND_DIRECTIONS[kind]
    if fixed is None:
        if direction not in (1, -1):
            raise InvalidQuantityException(direction, "Adjustments need a direction of 1 or -1")
        return direction
    if direction is not None and direction != fixed:
        raise InvalidQuantityException(direction, f"{kind} movements always have direction {fixed}")
    return fixed


class StockLedger:
    """Applies and records stock movements."""

    @staticmethod
    @retry_on_conflict
    def record_movement(product_id, kind: str, quantity, reason: str = "",
                        reference: Reference = None, user=None,
                        direction: Optional[int] = None) -> StockMovement:
        """
        Apply a movement to a product's stock and append it to the ledger.

        The product row is locked for the duration of the transaction and the
        stock write is conditional on the value read, so two movements on the
        same product can never both start from the same previous stock.

        Args:
            product_id: Product primary key
            kind: MovementKind value
            quantity: Positive quantity moved
            reason: Free-text reason stored on the movement
            reference: Originating business object, or a (type, id) tuple
            user: User performing the movement
            direction: 1 or -1, required for ADJUSTMENT only

        Returns:
            The created StockMovement

        Raises:
            ProductNotFoundException: If the product does not exist
            InvalidQuantityException: If quantity or direction is invalid
            InsufficientStockException: If stock would become negative
        """
        quantity = _to_quantity(quantity)
        sign = _resolve_direction(kind, direction)
        reference_type, reference_id = _resolve_reference(reference)

        with transaction.atomic():
            try:
                product = Product.objects.select_for_update().get(pk=product_id)
            except Product.DoesNotExist:
                raise ProductNotFoundException(product_id)

            previous_stock = product.stock
            new_stock = previous_stock + sign * quantity
            if new_stock < 0:
                raise InsufficientStockException(
                    product.pk, product.name, requested=quantity, available=previous_stock
                )

            updated = Product.objects.filter(pk=product.pk, stock=previous_stock).update(
                stock=new_stock, updated_at=timezone.now()
            )
            if updated != 1:
                raise StockConflictException(product.pk, previous_stock)

            movement = StockMovement.objects.create(
                product=product,
                movement_kind=kind,
                direction=sign,
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=new_stock,
                reason=reason,
                reference_type=reference_type,
                reference_id=reference_id,
                user=user,
            )

        logger.info(
            f"Stock {kind} for {product.name}: {previous_stock} -> {new_stock} "
            f"({'+' if sign > 0 else '-'}{quantity})"
        )
        return movement

    @staticmethod
    @retry_on_conflict
    def set_stock_level(product_id, counted_quantity, reason: str = "", user=None) -> Optional[StockMovement]:
        """
        Record the adjustment that brings a product to a counted quantity.

        Returns None when the product already holds that quantity.
        """
        try:
            counted = Decimal(str(counted_quantity))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidQuantityException(counted_quantity, "Counted quantity must be a number")
        if counted < 0:
            raise InvalidQuantityException(counted_quantity, "Counted quantity cannot be negative")

        with transaction.atomic():
            try:
                product = Product.objects.select_for_update().get(pk=product_id)
            except Product.DoesNotExist:
                raise ProductNotFoundException(product_id)

            difference = counted - product.stock
            if difference == 0:
                return None

            return StockLedger.record_movement(
                product.pk,
                MovementKind.ADJUSTMENT,
                abs(difference),
                reason=reason or f"Stock count: {product.stock} -> {counted}",
                user=user,
                direction=1 if difference > 0 else -1,
            )

    @staticmethod
    def replay(product_id) -> Decimal:
        """Rebuild a product's stock from its ledger, starting at zero."""
        stock = Decimal("0")
        movements = StockMovement.objects.filter(product_id=product_id).order_by("sequence")
        for direction, quantity in movements.values_list("direction", "quantity"):
            stock += direction * quantity
        return stock
