from django.db.models import F
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from .models import Product
from .serializers import ProductSerializer, ProductListSerializer
from users.permissions import IsAdminOrOperationsManager, IsOperatorOrAbove


class ProductViewSet(viewsets.ModelViewSet):
    queryset = Product.objects.all()
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "sku", "description"]
    filterset_fields = ["is_active", "is_manufactured", "unit"]
    ordering_fields = ["name", "sku", "stock", "created_at"]
    ordering = ["name"]

    def get_serializer_class(self):
        if self.action in ["list", "low_stock"]:
            return ProductListSerializer
        return ProductSerializer

    def get_permissions(self):
        if self.action in ["create", "update", "partial_update", "destroy"]:
            return [IsAdminOrOperationsManager()]
        return [IsOperatorOrAbove()]

    @action(detail=False, methods=["get"])
    def low_stock(self, request):
        """Active products at or below their minimum stock level"""
        products = self.filter_queryset(self.get_queryset()).filter(
            is_active=True, stock__lte=F("min_stock_level")
        )
        serializer = self.get_serializer(products, many=True)
        return Response(serializer.data)
