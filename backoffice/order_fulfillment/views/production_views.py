"""
Production views for Order Fulfillment.
"""

from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from ..models import ProductionRun
from ..services import ProductionService
from ..serializers.production_serializers import (
    ProductionRunSerializer, ProductionFinishSerializer, InternalRunSerializer
)
from ..permissions import IsFulfillmentStaff, CanManageOrders


class ProductionRunViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for production runs.

    Runs are listed and moved through their workflow; they are never
    deleted.
    """

    queryset = ProductionRun.objects.select_related('order_item__order', 'approved_by').all()
    serializer_class = ProductionRunSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'product']
    search_fields = ['production_number', 'product_name']
    ordering_fields = ['created_at', 'status']
    ordering = ['-created_at']

    def get_permissions(self):
        if self.action in ['finish', 'internal']:
            return [CanManageOrders()]
        return [IsFulfillmentStaff()]

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        """Start a pending production run."""
        run = ProductionService.start(pk, request.user)
        return Response({
            'success': True,
            'data': ProductionRunSerializer(run).data
        })

    @action(detail=True, methods=['post'])
    def finish(self, request, pk=None):
        """Complete, approve or reject a running production run."""
        serializer = ProductionFinishSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        run = ProductionService.finish(
            pk,
            data['outcome'],
            quantity_produced=data.get('quantity_produced'),
            user=request.user,
            notes=data['notes'],
        )
        return Response({
            'success': True,
            'data': ProductionRunSerializer(run).data
        })

    @action(detail=False, methods=['post'])
    def internal(self, request):
        """Create an internal run that replenishes stock."""
        serializer = InternalRunSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        run = ProductionService.create_internal_run(
            data['product_id'], data['quantity'], request.user, data['notes']
        )
        return Response({
            'success': True,
            'data': ProductionRunSerializer(run).data
        }, status=status.HTTP_201_CREATED)
