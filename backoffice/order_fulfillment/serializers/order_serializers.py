"""
Order serializers for Order Fulfillment.
"""

from decimal import Decimal

from rest_framework import serializers

from ..models import Order, OrderItem, OrderStatus, AuditLog


class OrderItemSerializer(serializers.ModelSerializer):
    """Serializer for OrderItem model."""

    unit_weight = serializers.DecimalField(max_digits=10, decimal_places=3, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'quantity', 'unit_price', 'line_total', 'unit_weight']
        read_only_fields = fields


class OrderItemInputSerializer(serializers.Serializer):
    """One line of a new order."""

    product_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))


class OrderCreateSerializer(serializers.Serializer):
    """Serializer for creating orders."""

    client_name = serializers.CharField(max_length=255)
    delivery_address = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    metadata = serializers.JSONField(required=False, default=dict)
    items = OrderItemInputSerializer(many=True)

    def validate_items(self, value):
        """Validate order items."""
        if not value:
            raise serializers.ValidationError("Order must contain at least one item")

        product_ids = [item['product_id'] for item in value]
        if len(product_ids) != len(set(product_ids)):
            raise serializers.ValidationError("Duplicate products in order")

        return value


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for order lists."""

    items_count = serializers.IntegerField(source='items.count', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'client_name', 'status',
            'total_amount', 'items_count', 'created_at'
        ]


class OrderDetailSerializer(serializers.ModelSerializer):
    """Detailed serializer for a single order."""

    items = OrderItemSerializer(many=True, read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'client_name', 'delivery_address', 'status',
            'total_amount', 'notes', 'metadata', 'items',
            'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)


class OrderTransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'action', 'old_values', 'new_values', 'username', 'notes', 'timestamp']
