"""
Packaging task model for Order Fulfillment.
"""

import uuid
from decimal import Decimal
from django.db import models
from django.utils import timezone


class PackagingStatus(models.TextChoices):
    """Packaging task status enumeration."""
    PENDING = 'PENDING', 'Pending'
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
    COMPLETED = 'COMPLETED', 'Completed'


class PackagingOrigin(models.TextChoices):
    """Where the goods of a packaging task come from."""
    STOCK = 'STOCK', 'Stock'
    PRODUCTION = 'PRODUCTION', 'Production'


class PackagingTask(models.Model):
    """
    Goods waiting to be packaged.

    A task is either fed by an approved production run (at most one task per
    run) or created straight from stock when an order is sent to production.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    packaging_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique packaging task identifier (auto-generated)"
    )

    production_run = models.OneToOneField(
        'ProductionRun',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='packaging_task',
    )
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='packaging_tasks',
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='packaging_tasks',
    )
    product_name = models.CharField(max_length=255)

    quantity_to_package = models.DecimalField(max_digits=12, decimal_places=3)
    quantity_packaged = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
    )

    status = models.CharField(
        max_length=20,
        choices=PackagingStatus.choices,
        default=PackagingStatus.PENDING,
    )
    origin = models.CharField(
        max_length=20,
        choices=PackagingOrigin.choices,
        default=PackagingOrigin.PRODUCTION,
    )

    packaged_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at']),
            models.Index(fields=['order', 'status']),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity_to_package__gt=0),
                name='packaging_task_quantity_positive',
            ),
        ]

    def __str__(self):
        return f"{self.packaging_number} - {self.product_name} ({self.quantity_packaged}/{self.quantity_to_package})"

    def save(self, *args, **kwargs):
        if not self.packaging_number:
            timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
            self.packaging_number = f"PKG-{timestamp}-{str(self.id)[:6].upper()}"
        super().save(*args, **kwargs)

    @property
    def remaining_to_package(self):
        return max(self.quantity_to_package - self.quantity_packaged, Decimal('0'))
