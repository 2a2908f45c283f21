"""
Tests for role-based permissions.
"""

from unittest import mock

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from ..models import Role
from ..permissions import IsAdminOrOperationsManager, IsOperatorOrAbove


class RolePermissionTest(TestCase):
    """Test which roles pass each permission class."""

    def _allowed(self, permission, user):
        return permission().has_permission(mock.Mock(user=user), None)

    def test_managing_roles(self):
        User = get_user_model()
        admin = User.objects.create_user(username='admin', password='testpass123', role=Role.ADMIN)
        manager = User.objects.create_user(username='manager', password='testpass123', role=Role.OPERATIONS_MANAGER)
        operator = User.objects.create_user(username='operator', password='testpass123')
        root = User.objects.create_superuser(username='root', password='testpass123', role=Role.OPERATOR)

        self.assertEqual(operator.role, Role.OPERATOR)
        for user in (admin, manager, root):
            self.assertTrue(self._allowed(IsAdminOrOperationsManager, user))
        self.assertFalse(self._allowed(IsAdminOrOperationsManager, operator))
        for user in (admin, manager, operator, root):
            self.assertTrue(self._allowed(IsOperatorOrAbove, user))

    def test_unknown_role_and_anonymous_are_refused(self):
        stranger = get_user_model().objects.create_user(username='stranger', password='testpass123', role='visitor')

        self.assertFalse(self._allowed(IsOperatorOrAbove, stranger))
        self.assertFalse(self._allowed(IsOperatorOrAbove, AnonymousUser()))
        self.assertFalse(self._allowed(IsAdminOrOperationsManager, AnonymousUser()))
