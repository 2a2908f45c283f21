"""
Tests for the route allocator.
"""

from urllib.parse import unquote

from django.test import SimpleTestCase
from hypothesis import given, settings as hypothesis_settings, strategies as st

from ..adapters.maps_adapter import GoogleMapsLinkAdapter
from ..services import (
    DeliveryStop, FleetVehicle, RegionClassifier, RegionQueue, RouteAllocator,
)

DEFAULT_REGION = 'Zona Sul / Centro / Niterói'
RULES = [
    ('Zona Norte', ['norte', 'nova américa', 'madureira']),
    ('Baixada', ['nova iguaçu', 'topshopping']),
]
ADDRESSES = [
    'Rua Dias da Cruz, 10 - Méier',
    'Estrada do Portela, 99 - Madureira',
    'Av. Pastor Martin Luther King, Nova América',
    'Rua Marechal Floriano, Nova Iguaçu',
    'TopShopping, loja 12',
    'Rua Voluntários da Pátria, Botafogo',
]


def make_allocator(unit_weight=50):
    return RouteAllocator(
        RegionClassifier.from_keywords(RULES, DEFAULT_REGION),
        unit_weight,
        GoogleMapsLinkAdapter('https://maps.example.com/dir/?api=1'),
    )


def make_stops(count, address='Rua Dias da Cruz, 10 - Méier'):
    return [DeliveryStop(f'order-{i}', address, f'Client {i}') for i in range(count)]


class RegionClassifierTest(SimpleTestCase):
    """Test address classification."""

    def test_first_matching_rule_wins(self):
        classifier = RegionClassifier.from_keywords(RULES, DEFAULT_REGION)

        self.assertEqual(classifier.classify('Estrada do Portela - MADUREIRA'), 'Zona Norte')
        self.assertEqual(classifier.classify('TopShopping, Nova Iguaçu'), 'Baixada')
        self.assertEqual(classifier.classify('Praia de Icaraí, Niterói'), DEFAULT_REGION)
        self.assertEqual(classifier.classify(''), DEFAULT_REGION)

    def test_rule_order_matters(self):
        classifier = RegionClassifier.from_keywords(
            [('Baixada', ['nova iguaçu']), ('Zona Norte', ['norte'])], DEFAULT_REGION
        )
        self.assertEqual(classifier.classify('Zona Norte, Nova Iguaçu'), 'Baixada')


class RegionQueueTest(SimpleTestCase):
    """Test the per-region FIFO."""

    def test_dequeue_keeps_arrival_order(self):
        stops = make_stops(4)
        queue = RegionQueue('Zona Norte', stops)

        self.assertEqual(queue.dequeue(3), stops[:3])
        self.assertEqual(len(queue), 1)
        self.assertEqual(queue.dequeue(3), stops[3:])
        self.assertFalse(queue)
        self.assertEqual(queue.drain(), [])


class RouteAllocatorTest(SimpleTestCase):
    """Test route allocation scenarios."""

    def test_capacity_overflow_goes_to_extra_route(self):
        allocator = make_allocator()
        stops = make_stops(7)

        result = allocator.allocate('Warehouse A', stops, [FleetVehicle('ABC-1234', 250)])

        self.assertEqual(len(result.routes), 2)
        main, extra = result.routes
        self.assertEqual(main.vehicle_plate, 'ABC-1234')
        self.assertEqual(main.stops, stops[:5])
        self.assertFalse(main.is_overflow)
        self.assertEqual(extra.vehicle_plate, 'ABC-1234 (Extra)')
        self.assertEqual(extra.stops, stops[5:])
        self.assertTrue(extra.is_overflow)
        self.assertEqual(result.unallocated_count, 0)

    def test_no_vehicles_leaves_orders_unallocated(self):
        result = make_allocator().allocate('Warehouse A', make_stops(3), [])

        self.assertEqual(result.routes, [])
        self.assertEqual(result.unallocated_count, 3)

    def test_falls_back_to_first_vehicle(self):
        vehicles = [FleetVehicle('AAA-0001', 500, 'Baixada'), FleetVehicle('BBB-0002', 500, 'Baixada')]
        stops = make_stops(2, 'Estrada do Portela - Madureira')

        result = make_allocator().allocate('Warehouse A', stops, vehicles)

        self.assertEqual(len(result.routes), 1)
        self.assertEqual(result.routes[0].vehicle_plate, 'AAA-0001')
        self.assertEqual(result.routes[0].region_label, 'Zona Norte')

    def test_vehicles_match_regions_by_tag(self):
        vehicles = [
            FleetVehicle('NORTE-01', 100, 'zona norte'),
            FleetVehicle('BAIX-01', 100, 'Baixada Fluminense'),
            FleetVehicle('SUL-01', 100),
        ]
        stops = [
            DeliveryStop('1', 'Rua A, Madureira', 'Mercado 1'),
            DeliveryStop('2', 'Rua B, Nova Iguaçu', 'Mercado 2'),
            DeliveryStop('3', 'Rua C, Botafogo', 'Mercado 3'),
            DeliveryStop('4', 'Rua D, Nova América', 'Mercado 4'),
        ]

        result = make_allocator().allocate('Warehouse A', stops, vehicles)

        plates = {route.region_label: route.vehicle_plate for route in result.routes}
        self.assertEqual(plates, {
            'Zona Norte': 'NORTE-01',
            'Baixada': 'BAIX-01',
            DEFAULT_REGION: 'SUL-01',
        })
        north = result.routes[0]
        self.assertEqual([stop.order_id for stop in north.stops], ['1', '4'])

    def test_stops_spread_over_matching_vehicles(self):
        vehicles = [FleetVehicle('SUL-01', 100), FleetVehicle('SUL-02', 120)]

        result = make_allocator().allocate('Warehouse A', make_stops(5), vehicles)

        self.assertEqual([len(route.stops) for route in result.routes], [2, 2, 1])
        self.assertEqual(result.routes[2].vehicle_plate, 'SUL-01 (Extra)')

    def test_small_vehicle_gets_one_slot(self):
        result = make_allocator().allocate('Warehouse A', make_stops(2), [FleetVehicle('MOTO-01', 20)])

        self.assertEqual(len(result.routes[0].stops), 1)
        self.assertTrue(result.routes[1].is_overflow)

    def test_navigation_link_is_round_trip(self):
        stops = make_stops(2, 'Rua A, 1 - Méier')

        route = make_allocator().allocate('Warehouse A', stops, [FleetVehicle('SUL-01', 500)]).routes[0]

        self.assertTrue(route.navigation_link.startswith('https://maps.example.com/dir/?api=1&'))
        self.assertIn('origin=Warehouse%20A', route.navigation_link)
        self.assertIn('destination=Warehouse%20A', route.navigation_link)
        waypoints = route.navigation_link.split('waypoints=')[1]
        self.assertEqual(unquote(waypoints), 'optimize:true|Rua A, 1 - Méier|Rua A, 1 - Méier')

    def test_rejects_non_positive_unit_weight(self):
        with self.assertRaises(ValueError):
            make_allocator(unit_weight=0)


stop_strategy = st.builds(
    DeliveryStop,
    order_id=st.uuids().map(str),
    delivery_address=st.sampled_from(ADDRESSES),
    client_label=st.text(max_size=10),
)
vehicle_strategy = st.builds(
    FleetVehicle,
    license_plate=st.text(alphabet='ABCDEFGH0123456789', min_size=3, max_size=8),
    capacity=st.integers(min_value=1, max_value=1000),
    region=st.sampled_from(['', 'Zona Norte', 'Baixada', 'Centro', 'Campo Grande']),
)


class RouteAllocatorPropertyTest(SimpleTestCase):
    """Properties that hold for any fleet and order list."""

    @hypothesis_settings(max_examples=200, deadline=None)
    @given(
        stops=st.lists(stop_strategy, max_size=40, unique_by=lambda stop: stop.order_id),
        vehicles=st.lists(vehicle_strategy, max_size=6),
    )
    def test_every_order_is_routed_or_counted_once(self, stops, vehicles):
        result = make_allocator().allocate('Warehouse A', stops, vehicles)

        routed = [stop.order_id for route in result.routes for stop in route.stops]
        self.assertEqual(len(routed), len(set(routed)))
        self.assertEqual(len(routed) + result.unallocated_count, len(stops))
        self.assertTrue(set(routed) <= {stop.order_id for stop in stops})
        if vehicles:
            self.assertEqual(result.unallocated_count, 0)

    @hypothesis_settings(max_examples=200, deadline=None)
    @given(
        stops=st.lists(stop_strategy, max_size=40, unique_by=lambda stop: stop.order_id),
        vehicles=st.lists(vehicle_strategy, min_size=1, max_size=6, unique_by=lambda vehicle: vehicle.license_plate),
        unit_weight=st.integers(min_value=1, max_value=200),
    )
    def test_regular_routes_respect_slot_capacity(self, stops, vehicles, unit_weight):
        allocator = make_allocator(unit_weight)
        capacities = {vehicle.license_plate: vehicle.capacity for vehicle in vehicles}

        result = allocator.allocate('Warehouse A', stops, vehicles)

        for route in result.routes:
            self.assertTrue(route.stops)
            if route.is_overflow:
                self.assertTrue(route.vehicle_plate.endswith(' (Extra)'))
                continue
            self.assertLessEqual(len(route.stops), max(1, capacities[route.vehicle_plate] // unit_weight))
        overflow_regions = [route.region_label for route in result.routes if route.is_overflow]
        self.assertEqual(len(overflow_regions), len(set(overflow_regions)))
