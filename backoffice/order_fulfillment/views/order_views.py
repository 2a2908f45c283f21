"""
Order views for Order Fulfillment.
"""

from rest_framework import viewsets, mixins, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from ..models import Order, AuditLog
from ..services import OrderService, CancellationService
from ..serializers.order_serializers import (
    OrderCreateSerializer, OrderListSerializer, OrderDetailSerializer,
    OrderCancelSerializer, OrderTransitionSerializer, AuditLogSerializer,
)
from ..serializers.production_serializers import ProductionRunSerializer
from ..serializers.packaging_serializers import PackagingTaskSerializer
from ..permissions import IsFulfillmentStaff, CanManageOrders


class OrderViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for Order management.

    Orders are created and moved through their workflow by actions; they
    are never edited or deleted directly.
    """

    queryset = Order.objects.prefetch_related('items').all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status']
    search_fields = ['order_number', 'client_name', 'delivery_address']
    ordering_fields = ['created_at', 'total_amount']
    ordering = ['-created_at']

    def get_permissions(self):
        if self.action in ['create', 'cancel', 'send_to_production', 'transition']:
            return [CanManageOrders()]
        return [IsFulfillmentStaff()]

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'list':
            return OrderListSerializer
        return OrderDetailSerializer

    def create(self, request, *args, **kwargs):
        """Create an order with its items."""
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.create_order(serializer.validated_data, created_by=request.user)
        return Response({
            'success': True,
            'data': OrderDetailSerializer(order).data
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel an order and return its items to stock."""
        serializer = OrderCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CancellationService.cancel_order(pk, serializer.validated_data['reason'], request.user)
        return Response({
            'success': result['success'],
            'message': result['message'],
            'stockUpdatesCount': result['stock_updates_count'],
            'stockMovementsCount': result['stock_movements_count'],
        })

    @action(detail=True, methods=['post'])
    def send_to_production(self, request, pk=None):
        """Split a pending order between stock and production."""
        result = OrderService.send_to_production(pk, request.user)
        return Response({
            'success': True,
            'data': {
                'order': OrderDetailSerializer(result['order']).data,
                'production_runs': ProductionRunSerializer(result['production_runs'], many=True).data,
                'packaging_tasks': PackagingTaskSerializer(result['packaging_tasks'], many=True).data,
            }
        })

    @action(detail=True, methods=['post'])
    def transition(self, request, pk=None):
        """Move an order along the release, sale and delivery steps."""
        serializer = OrderTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.transition(
            pk, serializer.validated_data['status'], request.user, serializer.validated_data['notes']
        )
        return Response({
            'success': True,
            'data': OrderDetailSerializer(order).data
        })

    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """Get order summary."""
        return Response({
            'success': True,
            'data': OrderService.get_order_summary(pk)
        })

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        """Audit trail of an order."""
        order = OrderService.get_order(pk)
        logs = AuditLog.objects.filter(entity_type='Order', entity_id=str(order.pk))
        return Response({
            'success': True,
            'data': AuditLogSerializer(logs, many=True).data
        })
