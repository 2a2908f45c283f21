from .region_rules import RegionRule, RegionClassifier, keyword_rule
from .route_allocator import (
    AllocationResult, DeliveryStop, FleetVehicle, RegionQueue,
    RouteAllocationService, RouteAllocator, RouteAssignment,
)

__all__ = [
    'RegionRule', 'RegionClassifier', 'keyword_rule',
    'AllocationResult', 'DeliveryStop', 'FleetVehicle', 'RegionQueue',
    'RouteAllocationService', 'RouteAllocator', 'RouteAssignment',
]
