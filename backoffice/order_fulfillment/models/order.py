"""
Order model for Order Fulfillment.
"""

import uuid
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone


class OrderStatus(models.TextChoices):
    """Order status enumeration with workflow states."""
    PENDING = 'PENDING', 'Pending'
    IN_PRODUCTION = 'IN_PRODUCTION', 'In Production'
    IN_PACKAGING = 'IN_PACKAGING', 'In Packaging'
    PACKAGED = 'PACKAGED', 'Packaged'
    RELEASED_FOR_SALE = 'RELEASED_FOR_SALE', 'Released for Sale'
    SALE_CONFIRMED = 'SALE_CONFIRMED', 'Sale Confirmed'
    IN_DELIVERY = 'IN_DELIVERY', 'In Delivery'
    DELIVERED = 'DELIVERED', 'Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'


READY_FOR_DELIVERY_STATUSES = [OrderStatus.RELEASED_FOR_SALE, OrderStatus.SALE_CONFIRMED]


class Order(models.Model):
    """
    Client order moving through production, packaging and delivery.

    ``notes`` doubles as the order's human-readable audit trail: cancellation
    appends a line to it instead of overwriting it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique order identifier (auto-generated)"
    )

    client_name = models.CharField(max_length=255)
    delivery_address = models.TextField(
        blank=True,
        help_text="Free-text address used for region classification and routing"
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        help_text="Current order status in the fulfillment workflow"
    )

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Sum of the line totals"
    )

    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_orders',
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='updated_orders',
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at']),
            models.Index(fields=['order_number']),
        ]

    def __str__(self):
        return f"Order {self.order_number} - {self.client_name}"

    def save(self, *args, **kwargs):
        """Override save to auto-generate order number if not provided."""
        if not self.order_number:
            timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
            self.order_number = f"ORD-{timestamp}-{str(self.id)[:8].upper()}"
        super().save(*args, **kwargs)

    @property
    def is_ready_for_delivery(self):
        return self.status in READY_FOR_DELIVERY_STATUSES

    @property
    def can_be_cancelled(self):
        """Check if order can still be cancelled."""
        return self.status not in [OrderStatus.IN_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CANCELLED]
