from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "sku", "unit", "stock", "min_stock_level", "is_manufactured", "is_active"]
    list_filter = ["unit", "is_manufactured", "is_active", "created_at"]
    search_fields = ["name", "sku", "description"]
    readonly_fields = ["stock", "created_at", "updated_at"]
