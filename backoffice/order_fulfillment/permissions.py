"""
Custom permissions for the Order Fulfillment module.
"""

from rest_framework.permissions import BasePermission


class IsFulfillmentStaff(BasePermission):
    """
    Permission that allows access to any back-office role.

    Operators run production and packaging; reading orders is open to them too.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_back_office_staff


class CanManageOrders(BasePermission):
    """
    Permission for creating, releasing and cancelling orders and for
    finishing production runs.

    Restricted to operations managers and admins.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.can_manage_fulfillment
