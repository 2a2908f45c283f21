"""
Packaging views for Order Fulfillment.
"""

from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from ..models import PackagingTask
from ..services import PackagingService
from ..serializers.packaging_serializers import PackagingTaskSerializer, RecordPackagedSerializer
from ..permissions import IsFulfillmentStaff


class PackagingTaskViewSet(viewsets.ReadOnlyModelViewSet):
    """ViewSet for the packaging queue."""

    queryset = PackagingTask.objects.select_related('order', 'production_run').all()
    serializer_class = PackagingTaskSerializer
    permission_classes = [IsFulfillmentStaff]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'origin', 'order', 'product']
    search_fields = ['packaging_number', 'product_name', 'order__order_number']
    ordering_fields = ['created_at', 'status']
    ordering = ['-created_at']

    @action(detail=True, methods=['post'])
    def record_packaged(self, request, pk=None):
        """Record packaged quantity on a task."""
        serializer = RecordPackagedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        task = PackagingService.record_packaged(pk, serializer.validated_data['quantity'], request.user)
        return Response({
            'success': True,
            'data': PackagingTaskSerializer(task).data
        })
