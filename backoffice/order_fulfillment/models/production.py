"""
Production run model for Order Fulfillment.
"""

import uuid
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class ProductionStatus(models.TextChoices):
    """Production run status enumeration."""
    PENDING = 'PENDING', 'Pending'
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
    COMPLETED = 'COMPLETED', 'Completed'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


class ProductionRun(models.Model):
    """
    A request to manufacture a quantity of one product.

    Runs created for an order line cover the stock shortfall of that line;
    internal runs (no order item) replenish stock. Runs are kept forever as
    the production history.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    production_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique production identifier (auto-generated)"
    )

    order_item = models.ForeignKey(
        'OrderItem',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='production_runs',
        help_text="Order line this run produces for; empty for internal runs"
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='production_runs',
    )
    product_name = models.CharField(max_length=255)

    quantity_requested = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        validators=[MinValueValidator(0.001)],
    )
    quantity_produced = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
    )

    status = models.CharField(
        max_length=20,
        choices=ProductionStatus.choices,
        default=ProductionStatus.PENDING,
    )

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_production_runs',
    )

    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_production_runs',
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at']),
            models.Index(fields=['production_number']),
        ]

    def __str__(self):
        return f"{self.production_number} - {self.product_name} x {self.quantity_requested}"

    def save(self, *args, **kwargs):
        if not self.production_number:
            timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
            self.production_number = f"PRD-{timestamp}-{str(self.id)[:6].upper()}"
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Production runs are kept as history and cannot be deleted")

    @property
    def is_internal(self):
        return self.order_item_id is None

    @property
    def order(self):
        return self.order_item.order if self.order_item_id else None
