"""
Production serializers for Order Fulfillment.
"""

from decimal import Decimal

from rest_framework import serializers

from ..models import ProductionRun
from ..services.production_service import FINISH_OUTCOMES


class ProductionRunSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(source='order_item.order_id', read_only=True, default=None)
    order_number = serializers.CharField(source='order_item.order.order_number', read_only=True, default=None)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, default=None)
    is_internal = serializers.BooleanField(read_only=True)

    class Meta:
        model = ProductionRun
        fields = [
            'id', 'production_number', 'order_item', 'order_id', 'order_number',
            'product', 'product_name', 'quantity_requested', 'quantity_produced',
            'status', 'is_internal', 'started_at', 'completed_at', 'approved_at',
            'approved_by', 'approved_by_username', 'notes', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ProductionFinishSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=FINISH_OUTCOMES)
    quantity_produced = serializers.DecimalField(
        max_digits=12, decimal_places=3, min_value=Decimal('0'), required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class InternalRunSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
    notes = serializers.CharField(required=False, allow_blank=True, default='')
