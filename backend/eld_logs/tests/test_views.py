"""
API tests for the ELD log endpoints.
"""

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from eld_logs.models import DutyStatusRecord, VehicleAssignment


class ELDLogsAPITest(TestCase):
    """Test duty status recording and timeline queries through the API."""

    def setUp(self):
        self.client = APIClient()
        VehicleAssignment.objects.create(driver_id="D1", vehicle_number="TRK-100")
        self.base = timezone.now().replace(microsecond=0) - timedelta(hours=12)
        self.status_url = "/api/eld/drivers/D1/status/"

    def post_status(self, status_code, offset_minutes, **extra):
        payload = {
            "status": status_code,
            "timestamp": (self.base + timedelta(minutes=offset_minutes)).isoformat(),
        }
        payload.update(extra)
        return self.client.post(self.status_url, payload, format="json")

    def test_health_check(self):
        response = self.client.get("/api/health/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "ok"

    def test_api_root(self):
        response = self.client.get("/api/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["endpoints"]["eld_logs"] == "/api/eld/"

    def test_status_types(self):
        response = self.client.get("/api/eld/status-types/")
        status_types = {s["code"]: s for s in response.data["status_types"]}

        assert response.status_code == status.HTTP_200_OK
        assert set(status_types) == {"OFF_DUTY", "SLEEPER", "ON_DUTY", "DRIVING"}
        assert status_types["OFF_DUTY"]["allowed_transitions"] == ["ON_DUTY", "SLEEPER"]

    def test_record_status_change(self):
        response = self.post_status(
            "ON_DUTY",
            0,
            location="Chicago, IL",
            odometer=125000,
            latitude=41.8781,
            longitude=-87.6298,
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == "ON_DUTY"
        assert response.data["is_open"] is True
        assert response.data["odometer_start"] == 125000
        assert response.data["latitude"] == 41.8781
        assert DutyStatusRecord.objects.filter(driver_id="D1").count() == 1

    def test_invalid_transition_returns_400(self):
        self.post_status("OFF_DUTY", 0)

        response = self.post_status("DRIVING", 30)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "INVALID_TRANSITION"
        assert "error" in response.data
        assert DutyStatusRecord.objects.filter(driver_id="D1").count() == 1

    def test_unknown_status_returns_400(self):
        response = self.post_status("PARKED", 0)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "INVALID_TRANSITION"

    def test_odometer_regression_returns_400(self):
        self.post_status("ON_DUTY", 0, odometer=1000)

        response = self.post_status("DRIVING", 10, odometer=900)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "ODOMETER_REGRESSION"
        assert response.data["details"]["previous_odometer"] == 1000

    def test_no_active_assignment_returns_409(self):
        response = self.client.post(
            "/api/eld/drivers/D9/status/", {"status": "ON_DUTY"}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["code"] == "NO_ACTIVE_ASSIGNMENT"

    def test_latitude_without_longitude_rejected(self):
        response = self.post_status("ON_DUTY", 0, latitude=41.0)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_current_status(self):
        self.post_status("ON_DUTY", 0)
        self.post_status("DRIVING", 15)

        response = self.client.get("/api/eld/drivers/D1/current/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "DRIVING"
        assert response.data["end_time"] is None

    def test_current_status_without_history_returns_404(self):
        response = self.client.get("/api/eld/drivers/D1/current/")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["code"] == "NOT_FOUND"

    def test_update_current_interval(self):
        self.post_status("ON_DUTY", 0, location="Yard")

        response = self.client.patch(
            "/api/eld/drivers/D1/current/",
            {"location": "Dock 7", "notes": "Pre-trip inspection"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["location"] == "Dock 7"
        assert response.data["notes"] == "Pre-trip inspection"
        assert response.data["status"] == "ON_DUTY"

    def test_entries_in_range(self):
        self.post_status("OFF_DUTY", 0)
        self.post_status("ON_DUTY", 60)
        self.post_status("DRIVING", 90)

        response = self.client.get(
            "/api/eld/drivers/D1/entries/",
            {"start": (self.base + timedelta(minutes=70)).isoformat()},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["total_entries"] == 2
        assert [e["status"] for e in response.data["entries"]] == ["ON_DUTY", "DRIVING"]

    def test_hours(self):
        self.post_status("ON_DUTY", 0)
        self.post_status("DRIVING", 30)
        self.post_status("OFF_DUTY", 270)

        response = self.client.get(
            "/api/eld/drivers/D1/hours/",
            {
                "statuses": "DRIVING",
                "start": self.base.isoformat(),
                "end": (self.base + timedelta(hours=6)).isoformat(),
            },
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["total_seconds"] == 4 * 3600
        assert response.data["total_hours"] == 4.0

    def test_hours_with_inverted_window_returns_400(self):
        response = self.client.get(
            "/api/eld/drivers/D1/hours/",
            {
                "start": self.base.isoformat(),
                "end": (self.base - timedelta(hours=1)).isoformat(),
            },
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "INVALID_WINDOW"

    def test_hours_with_unknown_status_returns_400(self):
        response = self.client.get(
            "/api/eld/drivers/D1/hours/",
            {
                "statuses": "DRIVING,NAPPING",
                "start": self.base.isoformat(),
                "end": (self.base + timedelta(hours=1)).isoformat(),
            },
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_weekly_summary(self):
        response = self.client.get("/api/eld/drivers/D1/weekly-summary/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["max_weekly_hours"] == 70
        assert response.data["total_duty_hours"] == 0.0

    def test_daily_summary(self):
        self.post_status("ON_DUTY", 0)
        day = timezone.localtime(self.base).date()

        response = self.client.get(
            "/api/eld/drivers/D1/daily-summary/", {"date": day.isoformat()}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["date"] == day.isoformat()
        assert response.data["totals"]["total_duty_seconds"] > 0

    def test_validate_timeline(self):
        self.post_status("ON_DUTY", 0)
        self.post_status("DRIVING", 15)

        response = self.client.get("/api/eld/drivers/D1/validate/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_valid"] is True
        assert response.data["total_records"] == 2
