from rest_framework import serializers
from .models import Vehicle


class VehicleSerializer(serializers.ModelSerializer):
    """Serializer for delivery vehicles."""
    is_available = serializers.BooleanField(read_only=True)

    class Meta:
        model = Vehicle
        fields = [
            'id', 'model', 'license_plate', 'capacity', 'region', 'driver_name',
            'status', 'is_available', 'notes', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_license_plate(self, value):
        plate = value.strip().upper()
        if not plate:
            raise serializers.ValidationError("License plate cannot be blank")
        queryset = Vehicle.objects.filter(license_plate=plate)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A vehicle with this license plate already exists")
        return plate


class AllocationOrderSerializer(serializers.Serializer):
    id = serializers.CharField()
    deliveryAddress = serializers.CharField(source='delivery_address', allow_blank=True)
    clientLabel = serializers.CharField(source='client_label', required=False, allow_blank=True, default='')
    weight = serializers.DecimalField(
        max_digits=12, decimal_places=3, required=False, allow_null=True, default=None
    )


class RouteAllocationRequestSerializer(serializers.Serializer):
    origin = serializers.CharField()
    orders = AllocationOrderSerializer(many=True, required=False)

    def validate_orders(self, value):
        ids = [order['id'] for order in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Order ids must be unique")
        return value


def _stop_payload(stop):
    return {
        'orderId': stop.order_id,
        'deliveryAddress': stop.delivery_address,
        'clientLabel': stop.client_label,
        'weight': None if stop.weight is None else str(stop.weight),
    }


def allocation_payload(result):
    """Render an AllocationResult in the route API's camelCase shape."""
    return {
        'routes': [
            {
                'vehiclePlate': route.vehicle_plate,
                'regionLabel': route.region_label,
                'isOverflow': route.is_overflow,
                'stops': [_stop_payload(stop) for stop in route.stops],
                'navigationLink': route.navigation_link,
            }
            for route in result.routes
        ],
        'unallocatedCount': result.unallocated_count,
    }
