"""
OrderItem model for Order Fulfillment.
"""

import uuid
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class OrderItem(models.Model):
    """
    Line item of an order.

    Items are written once when the order is created; quantities and prices
    are what cancellation restores and production is requested against, so
    they are never edited afterwards.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        related_name='items',
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='order_items',
    )
    product_name = models.CharField(
        max_length=255,
        help_text="Product name at time of order"
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        validators=[MinValueValidator(0.001)],
    )
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="quantity * unit_price"
    )

    class Meta:
        ordering = ['order', 'product_name']
        constraints = [
            models.UniqueConstraint(fields=['order', 'product'], name='order_item_unique_product'),
            models.CheckConstraint(check=models.Q(quantity__gt=0), name='order_item_quantity_positive'),
        ]

    def __str__(self):
        return f"{self.product_name} - {self.quantity} units"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Order items cannot be changed once created")
        self.line_total = (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(Decimal('0.01'))
        super().save(*args, **kwargs)

    @property
    def unit_weight(self):
        return self.product.unit_weight
