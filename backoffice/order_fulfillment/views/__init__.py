"""
Order Fulfillment Views
"""

from .order_views import OrderViewSet
from .production_views import ProductionRunViewSet
from .packaging_views import PackagingTaskViewSet

__all__ = [
    'OrderViewSet',
    'ProductionRunViewSet',
    'PackagingTaskViewSet',
]
