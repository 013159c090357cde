from django.db import DatabaseError, IntegrityError
from django.test import SimpleTestCase, TestCase, override_settings

from rest_framework.test import APIClient

from core.exceptions import CapacityError, ValidationError
from core.results import OperationResult, operation


class OperationBoundaryTests(SimpleTestCase):
    def test_domain_error_becomes_failed_result(self):
        @operation
        def full_team():
            raise CapacityError()

        result = full_team()

        self.assertFalse(result.success)
        self.assertEqual(result.error, "capacity")
        self.assertEqual(result.status_code, 409)
        self.assertEqual(result.to_dict(), {"success": False, "message": CapacityError.default_message, "error": "capacity"})

    def test_store_errors_are_translated(self):
        @operation
        def conflicting():
            raise IntegrityError("UNIQUE constraint failed")

        @operation
        def offline():
            raise DatabaseError("connection refused")

        self.assertEqual(conflicting().error, "duplicate")
        self.assertEqual(offline().error, "store_error")
        self.assertNotIn("connection refused", offline().message)

    def test_success_payload(self):
        result = OperationResult.ok("Done", {"id": 1}, warnings=["email failed"])

        self.assertEqual(
            result.to_dict(),
            {"success": True, "message": "Done", "data": {"id": 1}, "warnings": ["email failed"]},
        )

    def test_custom_message(self):
        self.assertEqual(ValidationError("Team name is required").message, "Team name is required")
        self.assertEqual(ValidationError().message, ValidationError.default_message)


class HealthCheckTests(TestCase):
    @override_settings(AUTO_ASSIGN_ON_CONSENSUS=False)
    def test_health(self):
        response = APIClient().get("/api/health/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "ok")
        self.assertFalse(response.data["auto_assign"])
