"""
Tests for the delivery API.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from order_fulfillment.models import Order, OrderStatus
from order_fulfillment.services import OrderService
from products.models import Product
from ..adapters.maps_adapter import (
    GoogleMapsLinkAdapter, MapsAdapterInterface, get_maps_adapter,
    switch_to_google_adapter, switch_to_maps_adapter,
)
from ..exceptions import InvalidAllocationRequest
from ..models import Vehicle, VehicleStatus
from ..services import RouteAllocationService


@override_settings(DELIVERY_UNIT_WEIGHT=50, DELIVERY_MAPS_BASE_URL='https://maps.example.com/dir/?api=1')
class RouteAllocationApiTest(TestCase):
    """Test the route allocation endpoint."""

    def setUp(self):
        User = get_user_model()
        self.operator = User.objects.create_user(username='operator', password='testpass123', role='operator')
        self.client = APIClient()
        self.client.force_authenticate(self.operator)

    def test_warehouse_scenario(self):
        Vehicle.objects.create(model='Fiorino', license_plate='abc-1234', capacity=250)
        orders = [
            {'id': f'order-{i}', 'deliveryAddress': f'Rua do Catete, {i}', 'clientLabel': f'Client {i}'}
            for i in range(7)
        ]

        response = self.client.post('/api/routes/allocate/', {'origin': 'Warehouse A', 'orders': orders}, format='json')

        self.assertEqual(response.status_code, 200)
        routes = response.data['routes']
        self.assertEqual([route['vehiclePlate'] for route in routes], ['ABC-1234', 'ABC-1234 (Extra)'])
        self.assertEqual([len(route['stops']) for route in routes], [5, 2])
        self.assertEqual([route['isOverflow'] for route in routes], [False, True])
        self.assertEqual(routes[0]['stops'][0]['orderId'], 'order-0')
        self.assertEqual(routes[0]['regionLabel'], 'Zona Sul / Centro / Niterói')
        self.assertIn('waypoints=optimize:true|', routes[0]['navigationLink'])
        self.assertEqual(response.data['unallocatedCount'], 0)

    def test_no_vehicles(self):
        Vehicle.objects.create(model='Sprinter', license_plate='OFF-0001', capacity=1000, status=VehicleStatus.MAINTENANCE)
        orders = [{'id': '1', 'deliveryAddress': 'Madureira'}, {'id': '2', 'deliveryAddress': 'Botafogo'}]

        response = self.client.post('/api/routes/allocate/', {'origin': 'Warehouse A', 'orders': orders}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['routes'], [])
        self.assertEqual(response.data['unallocatedCount'], 2)

    def test_uses_orders_ready_for_delivery(self):
        Vehicle.objects.create(model='Fiorino', license_plate='NOR-0001', capacity=500, region='Zona Norte')
        product = Product.objects.create(name='Biscoito', sku='BS-001', is_manufactured=True, unit_weight='0.5')
        ready = []
        for status in (OrderStatus.RELEASED_FOR_SALE, OrderStatus.SALE_CONFIRMED, OrderStatus.PENDING):
            order = OrderService.create_order({
                'client_name': f'Mercado {status}',
                'delivery_address': 'Estrada do Portela, Madureira',
                'items': [{'product_id': product.pk, 'quantity': 4, 'unit_price': '1'}],
            })
            Order.objects.filter(pk=order.pk).update(status=status)
            if status != OrderStatus.PENDING:
                ready.append(str(order.pk))

        response = self.client.post('/api/routes/allocate/', {'origin': 'Warehouse A'}, format='json')

        self.assertEqual(response.status_code, 200)
        stops = response.data['routes'][0]['stops']
        self.assertCountEqual([stop['orderId'] for stop in stops], ready)
        self.assertEqual(stops[0]['weight'], '2.000')
        self.assertEqual(response.data['routes'][0]['regionLabel'], 'Zona Norte')

    def test_origin_required(self):
        response = self.client.post('/api/routes/allocate/', {'orders': []}, format='json')
        self.assertEqual(response.status_code, 400)

        response = self.client.post('/api/routes/allocate/', {'origin': '   ', 'orders': []}, format='json')
        self.assertEqual(response.status_code, 400)

        with self.assertRaises(InvalidAllocationRequest):
            RouteAllocationService.allocate(' ', [])

    def test_duplicate_order_ids_rejected(self):
        orders = [{'id': '1', 'deliveryAddress': 'Madureira'}, {'id': '1', 'deliveryAddress': 'Botafogo'}]
        response = self.client.post('/api/routes/allocate/', {'origin': 'Warehouse A', 'orders': orders}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_requires_authentication(self):
        response = APIClient().post('/api/routes/allocate/', {'origin': 'Warehouse A'}, format='json')
        self.assertEqual(response.status_code, 401)


class StopListAdapter(MapsAdapterInterface):
    """Renders a route as a plain list of its stops."""

    def build_route_link(self, origin, stops):
        return f"{origin} -> " + " / ".join(stops)


class MapsAdapterSwitchTest(TestCase):
    """Test replacing the navigation link provider."""

    def setUp(self):
        User = get_user_model()
        self.operator = User.objects.create_user(username='operator', password='testpass123', role='operator')
        self.client = APIClient()
        self.client.force_authenticate(self.operator)
        Vehicle.objects.create(model='Fiorino', license_plate='SUL-0001', capacity=500)

    def tearDown(self):
        switch_to_google_adapter()

    def test_routes_use_the_current_adapter(self):
        switch_to_maps_adapter(StopListAdapter())
        orders = [{'id': '1', 'deliveryAddress': 'Rua A'}, {'id': '2', 'deliveryAddress': 'Rua B'}]

        response = self.client.post('/api/routes/allocate/', {'origin': 'Warehouse A', 'orders': orders}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['routes'][0]['navigationLink'], 'Warehouse A -> Rua A / Rua B')

        switch_to_google_adapter()
        self.assertIsInstance(get_maps_adapter(), GoogleMapsLinkAdapter)


class VehicleApiTest(TestCase):
    """Test vehicle registry endpoints."""

    def setUp(self):
        User = get_user_model()
        self.manager = User.objects.create_user(username='manager', password='testpass123', role='operations_manager')
        self.operator = User.objects.create_user(username='operator', password='testpass123', role='operator')
        self.client = APIClient()

    def test_create_and_filter(self):
        self.client.force_authenticate(self.manager)
        response = self.client.post('/api/vehicles/', {
            'model': 'Fiorino', 'license_plate': ' kxy-9a12 ', 'capacity': 600, 'region': 'Baixada'
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['license_plate'], 'KXY-9A12')
        self.assertEqual(response.data['status'], VehicleStatus.ACTIVE)

        response = self.client.post('/api/vehicles/', {
            'model': 'Kombi', 'license_plate': 'KXY-9A12', 'capacity': 400
        }, format='json')
        self.assertEqual(response.status_code, 400)

        self.client.force_authenticate(self.operator)
        response = self.client.get('/api/vehicles/', {'region': 'baixada'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)

    def test_operator_cannot_register(self):
        self.client.force_authenticate(self.operator)
        response = self.client.post('/api/vehicles/', {
            'model': 'Fiorino', 'license_plate': 'AAA-0001', 'capacity': 600
        }, format='json')
        self.assertEqual(response.status_code, 403)

    def test_capacity_must_be_positive(self):
        self.client.force_authenticate(self.manager)
        response = self.client.post('/api/vehicles/', {
            'model': 'Fiorino', 'license_plate': 'AAA-0001', 'capacity': 0
        }, format='json')
        self.assertEqual(response.status_code, 400)
