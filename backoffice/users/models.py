from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    OPERATIONS_MANAGER = "operations_manager", "Operations Manager"
    OPERATOR = "operator", "Operator"


# Roles allowed to create and cancel orders, finish production and move stock by hand.
MANAGING_ROLES = (Role.ADMIN, Role.OPERATIONS_MANAGER)


class User(AbstractUser):
    """Back-office account; the role decides which operations it may run."""

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.OPERATOR)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def can_manage_fulfillment(self):
        return self.is_superuser or self.role in MANAGING_ROLES

    @property
    def is_back_office_staff(self):
        return self.is_superuser or self.role in Role.values
