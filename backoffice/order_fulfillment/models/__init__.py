"""
Order Fulfillment Models
"""

from .order import Order, OrderStatus, READY_FOR_DELIVERY_STATUSES
from .order_item import OrderItem
from .production import ProductionRun, ProductionStatus
from .packaging import PackagingTask, PackagingStatus, PackagingOrigin
from .audit import AuditLog

__all__ = [
    # Order models
    'Order', 'OrderStatus', 'READY_FOR_DELIVERY_STATUSES',
    'OrderItem',

    # Production
    'ProductionRun', 'ProductionStatus',

    # Packaging
    'PackagingTask', 'PackagingStatus', 'PackagingOrigin',

    # Audit
    'AuditLog',
]
