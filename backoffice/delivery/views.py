"""
Delivery views: vehicle registry and route allocation.
"""

from rest_framework import viewsets, filters
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsAdminOrOperationsManager, IsOperatorOrAbove
from .models import Vehicle
from .serializers import VehicleSerializer, RouteAllocationRequestSerializer, allocation_payload
from .services import RouteAllocationService


class VehicleViewSet(viewsets.ModelViewSet):
    """ViewSet for the delivery fleet."""

    queryset = Vehicle.objects.all()
    serializer_class = VehicleSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['license_plate', 'model', 'driver_name', 'region']
    ordering_fields = ['license_plate', 'capacity', 'created_at']

    def get_permissions(self):
        if self.action in ['create', 'update', 'partial_update', 'destroy']:
            return [IsAdminOrOperationsManager()]
        return [IsOperatorOrAbove()]

    def get_queryset(self):
        queryset = super().get_queryset()
        status = self.request.query_params.get('status')
        region = self.request.query_params.get('region')
        if status:
            queryset = queryset.filter(status=status)
        if region:
            queryset = queryset.filter(region__icontains=region)
        return queryset


class RouteAllocationView(APIView):
    """
    Allocate delivery routes.

    POST {origin, orders?}. Without ``orders`` the orders currently ready
    for delivery are allocated. Nothing is persisted.
    """

    permission_classes = [IsOperatorOrAbove]

    def post(self, request):
        serializer = RouteAllocationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RouteAllocationService.allocate(
            serializer.validated_data['origin'],
            serializer.validated_data.get('orders'),
        )
        return Response(allocation_payload(result))
