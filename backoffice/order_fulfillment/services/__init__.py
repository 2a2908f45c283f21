"""
Order Fulfillment Services
"""

from .workflow import (
    OrderWorkflow, ProductionRunWorkflow, PackagingTaskWorkflow,
    validate_order_workflow, validate_production_workflow, validate_packaging_workflow,
)
from .order_service import OrderService
from .packaging_service import PackagingService
from .production_service import ProductionService
from .cancellation_service import CancellationService

__all__ = [
    # Workflow validators
    'OrderWorkflow', 'ProductionRunWorkflow', 'PackagingTaskWorkflow',
    'validate_order_workflow', 'validate_production_workflow', 'validate_packaging_workflow',

    # Services
    'OrderService', 'PackagingService', 'ProductionService', 'CancellationService',
]
