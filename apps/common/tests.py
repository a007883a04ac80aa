from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.test import TestCase
from rest_framework.exceptions import NotFound, ValidationError

from apps.accounts.models import UserRole
from apps.common.exceptions import api_exception_handler
from apps.common.permissions import ROLE_CAPABILITIES, resolve_role

User = get_user_model()


class ExceptionHandlerTests(TestCase):
    def test_field_errors_use_first_message(self):
        response = api_exception_handler(ValidationError({"items": ["At least one order item is required"]}), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.data,
            {
                "success": False,
                "error": "At least one order item is required",
                "code": "invalid",
                "fields": {"items": ["At least one order item is required"]},
            },
        )

    def test_not_found_detail(self):
        response = api_exception_handler(NotFound("Order not found"), {})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"], "Order not found")
        self.assertEqual(response.data["code"], "not_found")

    def test_database_error_becomes_storage_error(self):
        with self.assertLogs("apps.common.exceptions", level="ERROR"):
            response = api_exception_handler(OperationalError("database is locked"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["code"], "storage_error")
        self.assertEqual(response.data["error"], "database is locked")

    def test_unexpected_error_is_generic_500(self):
        with self.assertLogs("apps.common.exceptions", level="ERROR") as logs:
            response = api_exception_handler(RuntimeError("boom"), {})
        self.assertIs(logs.records[0].exc_info[0], RuntimeError)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["error"], "Internal server error")
        self.assertEqual(response.data["code"], "server_error")


class RoleResolutionTests(TestCase):
    def test_superuser_is_admin(self):
        user = User.objects.create_superuser(username="root_role", password="root123", email="root@example.com")
        self.assertEqual(resolve_role(user), UserRole.ADMIN)

    def test_only_admin_can_delete(self):
        self.assertIn("orders.delete", ROLE_CAPABILITIES[UserRole.ADMIN])
        self.assertNotIn("orders.delete", ROLE_CAPABILITIES[UserRole.MANAGER])
        self.assertNotIn("orders.manage", ROLE_CAPABILITIES[UserRole.VIEWER])
        self.assertIn("dashboard.view", ROLE_CAPABILITIES[UserRole.VIEWER])
