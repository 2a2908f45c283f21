from decimal import Decimal

from django.db import transaction
from rest_framework import serializers

from stock.models import MovementKind
from stock.services import StockLedger
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    initial_stock = serializers.DecimalField(
        max_digits=12, decimal_places=3, min_value=Decimal("0"), required=False, write_only=True
    )
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "unit",
            "description",
            "unit_weight",
            "is_manufactured",
            "min_stock_level",
            "stock",
            "initial_stock",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "stock", "created_at", "updated_at"]

    def validate(self, attrs):
        if self.instance is not None and "initial_stock" in attrs:
            raise serializers.ValidationError(
                {"initial_stock": "Stock of an existing product changes through stock movements only"}
            )
        return attrs

    def create(self, validated_data):
        initial_stock = validated_data.pop("initial_stock", None)
        user = self.context["request"].user if "request" in self.context else None
        with transaction.atomic():
            product = super().create(validated_data)
            if initial_stock:
                StockLedger.record_movement(
                    product.pk, MovementKind.INBOUND, initial_stock, reason="Initial stock", user=user
                )
                product.refresh_from_db()
        return product


class ProductListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "sku", "unit", "stock", "min_stock_level", "is_manufactured", "is_active"]
