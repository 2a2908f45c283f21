"""
Django admin configuration for Order Fulfillment.
"""

from django.contrib import admin
from .models import Order, OrderItem, ProductionRun, PackagingTask, AuditLog


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'product_name', 'quantity', 'unit_price', 'line_total']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'client_name', 'status', 'total_amount', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['order_number', 'client_name', 'delivery_address']
    # Status is changed by the services only
    readonly_fields = ['id', 'order_number', 'status', 'total_amount', 'created_at', 'updated_at']
    inlines = [OrderItemInline]


@admin.register(ProductionRun)
class ProductionRunAdmin(admin.ModelAdmin):
    list_display = ['production_number', 'product_name', 'quantity_requested', 'quantity_produced', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['production_number', 'product_name']
    readonly_fields = ['id', 'production_number', 'status', 'started_at', 'completed_at', 'approved_at', 'approved_by', 'created_at', 'updated_at']

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PackagingTask)
class PackagingTaskAdmin(admin.ModelAdmin):
    list_display = ['packaging_number', 'order', 'product_name', 'quantity_packaged', 'quantity_to_package', 'status', 'origin']
    list_filter = ['status', 'origin', 'created_at']
    search_fields = ['packaging_number', 'product_name', 'order__order_number']
    readonly_fields = ['id', 'packaging_number', 'created_at', 'updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['entity_type', 'entity_id', 'action', 'user', 'timestamp']
    list_filter = ['entity_type', 'action', 'timestamp']
    search_fields = ['entity_id', 'notes']
    readonly_fields = ['id', 'entity_type', 'entity_id', 'action', 'user', 'old_values', 'new_values', 'timestamp', 'notes']
