"""
Packaging serializers for Order Fulfillment.
"""

from decimal import Decimal

from rest_framework import serializers

from ..models import PackagingTask


class PackagingTaskSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)
    production_number = serializers.CharField(
        source='production_run.production_number', read_only=True, default=None
    )
    remaining_to_package = serializers.DecimalField(max_digits=12, decimal_places=3, read_only=True)

    class Meta:
        model = PackagingTask
        fields = [
            'id', 'packaging_number', 'production_run', 'production_number',
            'order', 'order_number', 'product', 'product_name',
            'quantity_to_package', 'quantity_packaged', 'remaining_to_package',
            'status', 'origin', 'packaged_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class RecordPackagedSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
