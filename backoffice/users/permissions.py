from rest_framework import permissions


class IsAdminOrOperationsManager(permissions.BasePermission):
    """Managing roles: admins, operations managers and superusers."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.can_manage_fulfillment)


class IsOperatorOrAbove(permissions.BasePermission):
    """Any back-office role, operators included."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_back_office_staff)
