import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from products.models import Product


class MovementKind(models.TextChoices):
    INBOUND = "INBOUND", "Inbound"
    OUTBOUND = "OUTBOUND", "Outbound"
    ADJUSTMENT = "ADJUSTMENT", "Adjustment"
    PRODUCTION_OUTPUT = "PRODUCTION_OUTPUT", "Production output"
    SALE_DEDUCTION = "SALE_DEDUCTION", "Sale deduction"
    CANCELLATION_RESTORE = "CANCELLATION_RESTORE", "Cancellation restore"


# Fixed sign of each kind; ADJUSTMENT takes its sign from the caller.
KIND_DIRECTIONS = {
    MovementKind.INBOUND: 1,
    MovementKind.OUTBOUND: -1,
    MovementKind.PRODUCTION_OUTPUT: 1,
    MovementKind.SALE_DEDUCTION: -1,
    MovementKind.CANCELLATION_RESTORE: 1,
    MovementKind.ADJUSTMENT: None,
}


class StockMovement(models.Model):
    """
    One append-only row of the stock ledger.

    Rows are written by StockLedger together with the product's new stock
    and are never updated or deleted afterwards.
    """

    DIRECTION_CHOICES = [
        (1, "Increase"),
        (-1, "Decrease"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="movements")
    movement_kind = models.CharField(max_length=30, choices=MovementKind.choices)
    direction = models.SmallIntegerField(choices=DIRECTION_CHOICES)
    quantity = models.DecimalField(max_digits=12, decimal_places=3, validators=[MinValueValidator(0.001)])
    previous_stock = models.DecimalField(max_digits=12, decimal_places=3)
    new_stock = models.DecimalField(max_digits=12, decimal_places=3)
    reason = models.TextField(blank=True)
    reference_type = models.CharField(max_length=50, blank=True)
    reference_id = models.CharField(max_length=64, blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    # Insertion counter; replay order when timestamps tie.
    sequence = models.BigIntegerField(editable=False, db_index=True, default=0)

    class Meta:
        db_table = "stock_movements"
        verbose_name = "Stock Movement"
        verbose_name_plural = "Stock Movements"
        ordering = ["-created_at", "-sequence"]
        indexes = [
            models.Index(fields=["product", "sequence"]),
            models.Index(fields=["movement_kind"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]

    def __str__(self):
        sign = "+" if self.direction > 0 else "-"
        return f"{self.movement_kind} {self.product.name} {sign}{self.quantity} ({self.previous_stock} -> {self.new_stock})"

    @property
    def signed_quantity(self):
        return self.direction * self.quantity

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("quantity must be greater than zero")
        expected = KIND_DIRECTIONS.get(self.movement_kind)
        if expected is not None and self.direction != expected:
            raise ValidationError(f"{self.movement_kind} requires direction={expected}")
        if self.new_stock - self.previous_stock != self.signed_quantity:
            raise ValidationError("new_stock - previous_stock must equal the signed quantity")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Stock movements are immutable")
        self.full_clean(exclude=["product", "user"])
        if not self.sequence:
            last = StockMovement.objects.filter(product_id=self.product_id).aggregate(models.Max("sequence"))
            self.sequence = (last["sequence__max"] or 0) + 1
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Stock movements are immutable")
