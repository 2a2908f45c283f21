from django.contrib import admin
from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ["movement_kind", "product", "direction", "quantity", "previous_stock", "new_stock", "user", "created_at"]
    list_filter = ["movement_kind", "direction", "created_at"]
    search_fields = ["product__name", "product__sku", "reason", "reference_id"]
    readonly_fields = [field.name for field in StockMovement._meta.fields]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
