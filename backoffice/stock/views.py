import logging

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsAdminOrOperationsManager, IsOperatorOrAbove
from .filters import StockMovementFilter
from .models import StockMovement
from .serializers import StockMovementSerializer, StockMovementCreateSerializer, StockCountSerializer
from .services import StockLedger, StockMovementQuery

logger = logging.getLogger(__name__)


class StockMovementViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Stock ledger audit trail.

    Movements can be listed, read and created; they are never updated or
    deleted.
    """

    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return StockMovementQuery.list_movements()

    def get_permissions(self):
        if self.action in ["create", "count"]:
            return [IsAdminOrOperationsManager()]
        return [IsOperatorOrAbove()]

    def list(self, request, *args, **kwargs):
        """List movements newest first, filtered by StockMovementFilter and capped by ?limit=."""
        filterset = StockMovementFilter(request.query_params, queryset=StockMovement.objects.none())
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        params = filterset.form.cleaned_data

        limit = request.query_params.get("limit")
        if limit:
            try:
                limit = int(limit)
            except ValueError:
                raise ValidationError({"limit": "limit must be a positive integer"})
            if limit < 1:
                raise ValidationError({"limit": "limit must be a positive integer"})
        else:
            limit = None

        product = params.get("product")
        user = params.get("user")
        queryset = StockMovementQuery.list_movements(
            product_id=int(product) if product is not None else None,
            movement_kind=params.get("movement_kind") or None,
            start_date=params.get("start_date"),
            end_date=params.get("end_date"),
            reference_type=params.get("reference_type") or None,
            reference_id=params.get("reference_id") or None,
            user_id=user.pk if user is not None else None,
            limit=limit,
        )
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    def create(self, request, *args, **kwargs):
        serializer = StockMovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        reference = None
        if data.get("reference_type"):
            reference = (data["reference_type"], data["reference_id"])

        movement = StockLedger.record_movement(
            data["product"].pk,
            data["movement_kind"],
            data["quantity"],
            reason=data["reason"],
            reference=reference,
            user=request.user,
            direction=data.get("direction"),
        )
        return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def count(self, request):
        """Bring a product to a physically counted quantity with one adjustment."""
        serializer = StockCountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        movement = StockLedger.set_stock_level(
            data["product"].pk, data["counted_quantity"], reason=data["reason"], user=request.user
        )
        if movement is None:
            return Response({"detail": "Stock already matches the counted quantity"})
        return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def consistency(self, request):
        """Compare a product's stock with the value replayed from its movements."""
        product_id = request.query_params.get("product")
        if not product_id:
            return Response({"error": "product parameter is required"}, status=status.HTTP_400_BAD_REQUEST)

        report = StockMovementQuery.consistency_report(product_id)
        if not report["consistent"]:
            logger.warning(
                f"Ledger mismatch for product {product_id}: "
                f"stock {report['current_stock']}, replayed {report['replayed_stock']}"
            )
        return Response(report)
