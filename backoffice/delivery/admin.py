from django.contrib import admin
from .models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['license_plate', 'model', 'capacity', 'region', 'driver_name', 'status', 'created_at']
    list_filter = ['status', 'region', 'created_at']
    search_fields = ['license_plate', 'model', 'driver_name', 'region']
    ordering = ['license_plate']
    readonly_fields = ['created_at', 'updated_at']
