"""
Delivery route allocation.

Orders are grouped by region, each region is drained in arrival order into
the vehicles serving it, and whatever no vehicle can take is put on one
overflow route against the region's first vehicle. Slots are counted per
stop (``capacity // unit_weight``), not by actual parcel weight.
"""

import logging
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from django.conf import settings

from order_fulfillment.models import Order, READY_FOR_DELIVERY_STATUSES
from ..adapters.maps_adapter import MapsAdapterInterface, get_maps_adapter
from ..exceptions import InvalidAllocationRequest
from ..models import Vehicle, VehicleStatus
from .region_rules import RegionClassifier

logger = logging.getLogger(__name__)

OVERFLOW_SUFFIX = " (Extra)"


@dataclass(frozen=True)
class DeliveryStop:
    order_id: str
    delivery_address: str
    client_label: str
    weight: Optional[Decimal] = None


@dataclass(frozen=True)
class FleetVehicle:
    license_plate: str
    capacity: int
    region: str = ""


@dataclass
class RouteAssignment:
    vehicle_plate: str
    region_label: str
    stops: List[DeliveryStop]
    navigation_link: str
    is_overflow: bool = False


@dataclass
class AllocationResult:
    routes: List[RouteAssignment] = field(default_factory=list)
    unallocated_count: int = 0

    @property
    def allocated_count(self) -> int:
        return sum(len(route.stops) for route in self.routes)


class RegionQueue:
    """FIFO of the stops waiting in one region."""

    def __init__(self, label: str, stops: Iterable[DeliveryStop] = ()):
        self.label = label
        self._stops = deque(stops)

    def __len__(self):
        return len(self._stops)

    def __bool__(self):
        return bool(self._stops)

    def enqueue(self, stop: DeliveryStop):
        self._stops.append(stop)

    def dequeue(self, count: int) -> List[DeliveryStop]:
        """Remove and return up to ``count`` stops from the head of the queue."""
        taken = []
        while self._stops and len(taken) < count:
            taken.append(self._stops.popleft())
        return taken

    def drain(self) -> List[DeliveryStop]:
        return self.dequeue(len(self._stops))


class RouteAllocator:
    """
    Assigns delivery stops to vehicles by region.

    Pure: reads nothing from the database, so the same inputs always give
    the same routes.
    """

    def __init__(self, classifier: RegionClassifier, unit_weight: int, maps_adapter: MapsAdapterInterface):
        if unit_weight <= 0:
            raise ValueError("unit_weight must be positive")
        self.classifier = classifier
        self.unit_weight = unit_weight
        self.maps_adapter = maps_adapter

    def slots_for(self, vehicle: FleetVehicle) -> int:
        return max(1, int(vehicle.capacity // self.unit_weight))

    def serves(self, vehicle: FleetVehicle, region_label: str) -> bool:
        # Untagged vehicles serve the default region.
        tag = (vehicle.region or self.classifier.default_label).lower()
        label = region_label.lower()
        return tag in label or label in tag

    def group_by_region(self, stops: Sequence[DeliveryStop]) -> "OrderedDict[str, RegionQueue]":
        queues: "OrderedDict[str, RegionQueue]" = OrderedDict()
        for stop in stops:
            label = self.classifier.classify(stop.delivery_address)
            if label not in queues:
                queues[label] = RegionQueue(label)
            queues[label].enqueue(stop)
        return queues

    def candidates_for(self, region_label: str, vehicles: Sequence[FleetVehicle]) -> List[FleetVehicle]:
        matching = [vehicle for vehicle in vehicles if self.serves(vehicle, region_label)]
        if not matching and vehicles:
            logger.info(f"No vehicle serves {region_label}, falling back to {vehicles[0].license_plate}")
            return [vehicles[0]]
        return matching

    def allocate(self, origin: str, stops: Sequence[DeliveryStop], vehicles: Sequence[FleetVehicle]) -> AllocationResult:
        """
        Build routes for ``stops`` leaving from and returning to ``origin``.

        Every stop ends up in exactly one route or in ``unallocated_count``.
        """
        result = AllocationResult()

        for label, queue in self.group_by_region(stops).items():
            candidates = self.candidates_for(label, vehicles)
            if not candidates:
                logger.warning(f"No vehicles available for {label}: {len(queue)} orders unallocated")
                result.unallocated_count += len(queue)
                continue

            for vehicle in candidates:
                if not queue:
                    break
                taken = queue.dequeue(self.slots_for(vehicle))
                result.routes.append(self._route(origin, vehicle.license_plate, label, taken))

            if queue:
                leftovers = queue.drain()
                logger.info(f"{len(leftovers)} orders in {label} exceed fleet capacity, adding overflow route")
                result.routes.append(
                    self._route(origin, candidates[0].license_plate + OVERFLOW_SUFFIX, label, leftovers, True)
                )

        return result

    def _route(self, origin, plate, label, stops, is_overflow=False) -> RouteAssignment:
        link = self.maps_adapter.build_route_link(origin, [stop.delivery_address for stop in stops])
        return RouteAssignment(
            vehicle_plate=plate,
            region_label=label,
            stops=stops,
            navigation_link=link,
            is_overflow=is_overflow,
        )


def _order_weight(order: Order) -> Optional[Decimal]:
    total = Decimal("0")
    for item in order.items.all():
        if item.product.unit_weight is None:
            return None
        total += item.quantity * item.product.unit_weight
    return total.quantize(Decimal("0.001"))


class RouteAllocationService:
    """Loads orders and vehicles and runs the allocator over them."""

    @staticmethod
    def build_allocator() -> RouteAllocator:
        return RouteAllocator(
            RegionClassifier.from_settings(),
            settings.DELIVERY_UNIT_WEIGHT,
            get_maps_adapter(),
        )

    @staticmethod
    def active_fleet() -> List[FleetVehicle]:
        vehicles = Vehicle.objects.filter(status=VehicleStatus.ACTIVE).order_by("created_at", "license_plate")
        return [FleetVehicle(v.license_plate, v.capacity, v.region) for v in vehicles]

    @staticmethod
    def ready_orders() -> List[DeliveryStop]:
        """Snapshot of the orders waiting for delivery, oldest first."""
        orders = (
            Order.objects.filter(status__in=READY_FOR_DELIVERY_STATUSES)
            .prefetch_related("items__product")
            .order_by("created_at")
        )
        return [
            DeliveryStop(str(order.id), order.delivery_address, order.client_name, _order_weight(order))
            for order in orders
        ]

    @staticmethod
    def allocate(origin: str, orders: Optional[Sequence[Dict]] = None) -> AllocationResult:
        """
        Allocate delivery routes from ``origin``.

        Nothing is reserved, so two concurrent allocations may assign the
        same order to different routes.

        Args:
            origin: Warehouse address the routes start and end at
            orders: Optional list of {id, delivery_address, client_label, weight};
                when omitted, the orders ready for delivery are used

        Returns:
            AllocationResult with the routes and the unallocated count
        """
        if not origin or not origin.strip():
            raise InvalidAllocationRequest("An origin address is required")

        if orders is None:
            stops = RouteAllocationService.ready_orders()
        else:
            stops = [
                DeliveryStop(
                    str(order["id"]),
                    order.get("delivery_address", ""),
                    order.get("client_label", ""),
                    order.get("weight"),
                )
                for order in orders
            ]

        result = RouteAllocationService.build_allocator().allocate(
            origin.strip(), stops, RouteAllocationService.active_fleet()
        )
        logger.info(
            f"Allocated {result.allocated_count} of {len(stops)} orders into {len(result.routes)} routes "
            f"from {origin.strip()} ({result.unallocated_count} unallocated)"
        )
        return result
