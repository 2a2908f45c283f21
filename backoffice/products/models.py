from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    UNIT_CHOICES = [
        ("piece", "Piece"),
        ("kg", "Kilogram"),
        ("g", "Gram"),
        ("l", "Liter"),
        ("ml", "Milliliter"),
        ("box", "Box"),
    ]

    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, unique=True, db_index=True)
    unit = models.CharField(max_length=20, choices=UNIT_CHOICES, default="piece")
    description = models.TextField(blank=True)
    unit_weight = models.DecimalField(
        max_digits=10, decimal_places=3, null=True, blank=True, help_text="Weight of one unit in kg"
    )
    is_manufactured = models.BooleanField(
        default=False, help_text="Manufactured in-house; shortfalls can be sent to production"
    )
    min_stock_level = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal("10"), validators=[MinValueValidator(0)]
    )
    # Written only by stock.services.StockLedger so every change has a ledger row.
    stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
        editable=False,
        validators=[MinValueValidator(0)],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        verbose_name = "Product"
        verbose_name_plural = "Products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["sku"]),
            models.Index(fields=["is_active"]),
        ]
        constraints = [
            models.CheckConstraint(check=models.Q(stock__gte=0), name="product_stock_non_negative"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def is_low_stock(self):
        return self.stock <= self.min_stock_level
