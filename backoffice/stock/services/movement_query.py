"""
Read-only queries over the stock ledger.
"""

from decimal import Decimal
from typing import Dict, Any

from django.conf import settings
from django.db.models import QuerySet

from products.models import Product
from ..exceptions import ProductNotFoundException
from ..models import StockMovement
from .ledger_service import StockLedger


class StockMovementQuery:
    """Audit queries for stock movements."""

    @staticmethod
    def list_movements(product_id=None, movement_kind=None, start_date=None, end_date=None,
                       reference_type=None, reference_id=None, user_id=None, limit=None) -> QuerySet:
        """
        Filter movements, newest first.

        Args:
            product_id: Restrict to one product
            movement_kind: Restrict to one MovementKind
            start_date: Inclusive lower bound on created_at
            end_date: Inclusive upper bound on created_at
            reference_type: Restrict to movements of one originating object type
            reference_id: Restrict to one originating object
            user_id: Restrict to movements recorded by one user
            limit: Maximum number of rows
        """
        movements = StockMovement.objects.select_related("product", "user").order_by("-created_at", "-sequence")
        if product_id is not None:
            movements = movements.filter(product_id=product_id)
        if movement_kind:
            movements = movements.filter(movement_kind=movement_kind)
        if start_date is not None:
            movements = movements.filter(created_at__gte=start_date)
        if end_date is not None:
            movements = movements.filter(created_at__lte=end_date)
        if reference_type:
            movements = movements.filter(reference_type=reference_type)
        if reference_id:
            movements = movements.filter(reference_id=reference_id)
        if user_id is not None:
            movements = movements.filter(user_id=user_id)
        if limit:
            movements = movements[:limit]
        return movements

    @staticmethod
    def check_low_stock(product_id, min_stock_level=None) -> bool:
        """Whether a product is at or below its minimum stock level."""
        try:
            product = Product.objects.get(pk=product_id)
        except Product.DoesNotExist:
            raise ProductNotFoundException(product_id)

        if min_stock_level is None:
            min_stock_level = product.min_stock_level if product.min_stock_level is not None else settings.LOW_STOCK_DEFAULT_LEVEL
        return product.stock <= Decimal(str(min_stock_level))

    @staticmethod
    def consistency_report(product_id) -> Dict[str, Any]:
        """Compare a product's stock with the value replayed from its ledger."""
        try:
            product = Product.objects.get(pk=product_id)
        except Product.DoesNotExist:
            raise ProductNotFoundException(product_id)

        replayed = StockLedger.replay(product.pk)
        return {
            "product_id": product.pk,
            "product_name": product.name,
            "current_stock": product.stock,
            "replayed_stock": replayed,
            "movements_count": product.movements.count(),
            "consistent": replayed == product.stock,
        }
