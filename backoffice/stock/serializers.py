from decimal import Decimal

from rest_framework import serializers

from products.models import Product
from .models import MovementKind, StockMovement

MANUAL_KINDS = [MovementKind.INBOUND, MovementKind.OUTBOUND, MovementKind.ADJUSTMENT]


class StockMovementSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    user_name = serializers.CharField(source="user.username", read_only=True, default=None)
    signed_quantity = serializers.DecimalField(max_digits=12, decimal_places=3, read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "movement_kind",
            "direction",
            "quantity",
            "signed_quantity",
            "previous_stock",
            "new_stock",
            "reason",
            "reference_type",
            "reference_id",
            "user",
            "user_name",
            "sequence",
            "created_at",
        ]
        read_only_fields = fields


class StockMovementCreateSerializer(serializers.Serializer):
    """Input for manual movements; production, sale and cancellation rows come from their workflows."""

    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    movement_kind = serializers.ChoiceField(choices=MANUAL_KINDS)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal("0.001"))
    direction = serializers.ChoiceField(choices=[1, -1], required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    reference_type = serializers.CharField(required=False, allow_blank=True, max_length=50)
    reference_id = serializers.CharField(required=False, allow_blank=True, max_length=64)

    def validate(self, attrs):
        kind = attrs["movement_kind"]
        direction = attrs.get("direction")
        if kind == MovementKind.ADJUSTMENT and direction is None:
            raise serializers.ValidationError({"direction": "Adjustments need a direction of 1 or -1"})
        if kind != MovementKind.ADJUSTMENT and direction is not None:
            raise serializers.ValidationError({"direction": "Only adjustments accept a direction"})
        if bool(attrs.get("reference_type")) != bool(attrs.get("reference_id")):
            raise serializers.ValidationError("reference_type and reference_id must be given together")
        return attrs


class StockCountSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    counted_quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
