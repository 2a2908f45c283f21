import uuid

from django.core.validators import MinValueValidator
from django.db import models


class VehicleStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    MAINTENANCE = "MAINTENANCE", "Maintenance"
    INACTIVE = "INACTIVE", "Inactive"


class Vehicle(models.Model):
    """Delivery vehicle available to the route allocator."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    model = models.CharField(max_length=100)
    license_plate = models.CharField(max_length=20, unique=True)
    capacity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)], help_text="Weight capacity in kg"
    )
    # Free-text service region, matched against region labels by containment.
    region = models.CharField(max_length=100, blank=True)
    driver_name = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=VehicleStatus.choices, default=VehicleStatus.ACTIVE)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "delivery_vehicles"
        verbose_name = "Vehicle"
        verbose_name_plural = "Vehicles"
        ordering = ["created_at", "license_plate"]
        constraints = [
            models.CheckConstraint(check=models.Q(capacity__gt=0), name="vehicle_capacity_positive"),
        ]

    def __str__(self):
        return f"{self.license_plate} - {self.model}"

    def save(self, *args, **kwargs):
        self.license_plate = self.license_plate.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_available(self):
        return self.status == VehicleStatus.ACTIVE
