"""
URL configuration for the backoffice project.

All API endpoints are registered on one router under ``/api/``; JWT tokens
are issued under ``/api/auth/``.
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from products.views import ProductViewSet
from stock.views import StockMovementViewSet
from order_fulfillment.views import OrderViewSet, ProductionRunViewSet, PackagingTaskViewSet
from delivery.views import VehicleViewSet, RouteAllocationView


@require_http_methods(["GET"])
def api_root(request):
    """API root view with available endpoints."""
    return JsonResponse({
        'message': 'Backoffice Fulfillment API',
        'version': '1.0.0',
        'endpoints': {
            'authentication': {
                'token': '/api/auth/token/',
                'token_refresh': '/api/auth/token/refresh/',
            },
            'catalogue': {
                'products': '/api/products/',
                'low_stock': '/api/products/low_stock/',
            },
            'stock': {
                'movements': '/api/stock/movements/',
                'consistency': '/api/stock/movements/consistency/',
            },
            'fulfillment': {
                'orders': '/api/orders/',
                'production': '/api/production/',
                'packaging': '/api/packaging/',
            },
            'delivery': {
                'vehicles': '/api/vehicles/',
                'allocate_routes': '/api/routes/allocate/',
            },
        }
    })


router = DefaultRouter()

router.register(r'products', ProductViewSet, basename='api-products')
router.register(r'stock/movements', StockMovementViewSet, basename='api-stock-movements')
router.register(r'orders', OrderViewSet, basename='api-orders')
router.register(r'production', ProductionRunViewSet, basename='api-production')
router.register(r'packaging', PackagingTaskViewSet, basename='api-packaging')
router.register(r'vehicles', VehicleViewSet, basename='api-vehicles')

urlpatterns = [
    path("admin/", admin.site.urls),

    path('api/', api_root, name='api-root'),  # Exact match for /api/ (must be first)
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/routes/allocate/', RouteAllocationView.as_view(), name='route-allocate'),
    path('api/', include(router.urls)),
]
