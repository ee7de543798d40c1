"""
Integration tests for the scheduling HTTP API.

Runs the FastAPI application with a SQLite database and a recording
notification gateway.
"""

import pytest

from clinicbook.domains.scheduling.application.ports.notification_port import NotificationKind
from tests.utils import PATIENT_ID, PROVIDER_ID

pytestmark = [pytest.mark.integration, pytest.mark.api]

API = "/api/v1/scheduling"


def _book(client, start_at="2025-03-03T10:00:00", **overrides):
    payload = {"provider_id": PROVIDER_ID, "patient_id": PATIENT_ID, "start_at": start_at, **overrides}
    return client.post(f"{API}/appointments", json=payload)


# ============================================================================
# Health and slots
# ============================================================================


def test_health(test_client):
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "environment": "test"}


def test_readiness_queries_database(test_client):
    response = test_client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "up"}


class TestSlotsEndpoints:
    """Tests for slot listing and next-available search."""

    def test_list_monday_slots(self, test_client):
        """Should list 14 thirty-minute slots around the lunch break."""
        response = test_client.get(f"{API}/providers/{PROVIDER_ID}/slots", params={"date": "2025-03-03"})

        assert response.status_code == 200
        data = response.json()
        assert data["available_count"] == 14
        starts = [s["start_at"][11:16] for s in data["slots"]]
        assert starts[:6] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
        assert starts[6:] == ["13:00", "13:30", "14:00", "14:30", "15:00", "15:30", "16:00", "16:30"]

    def test_booked_slot_reported(self, test_client):
        assert _book(test_client).status_code == 201

        data = test_client.get(f"{API}/providers/{PROVIDER_ID}/slots", params={"date": "2025-03-03"}).json()

        booked = [s for s in data["slots"] if not s["available"]]
        assert [(s["start_at"][11:16], s["reason"]) for s in booked] == [("10:00", "booked")]

    def test_weekend_has_no_slots(self, test_client):
        response = test_client.get(f"{API}/providers/{PROVIDER_ID}/slots", params={"date": "2025-03-08"})

        assert response.json()["slots"] == []

    def test_next_available(self, test_client):
        _book(test_client, "2025-03-03T09:00:00")

        response = test_client.get(
            f"{API}/providers/{PROVIDER_ID}/next-available", params={"after": "2025-03-03T08:00:00"}
        )

        data = response.json()
        assert data["found"] is True
        assert data["slot"]["start_at"] == "2025-03-03T09:30:00"

    def test_unknown_provider(self, test_client):
        response = test_client.get(f"{API}/providers/nobody/slots", params={"date": "2025-03-03"})

        assert response.status_code == 404
        body = response.json()
        assert body["error"] is True
        assert body["code"] == "NOT_FOUND"


# ============================================================================
# Booking lifecycle
# ============================================================================


class TestAppointmentEndpoints:
    """Tests for booking, confirm, cancel and reschedule."""

    def test_book(self, test_client, container):
        """Should create a pending booking and email a confirmation."""
        response = _book(test_client, reason="Toothache")

        assert response.status_code == 201
        data = response.json()
        assert data["appointment"]["status"] == "pending"
        assert data["appointment"]["end_at"] == "2025-03-03T10:30:00"
        assert data["confirmation_sent"] is True
        assert len(container.gateway.sent_of_kind(NotificationKind.BOOKING_CONFIRMATION)) == 1

    def test_double_booking_conflict(self, test_client):
        """Should answer 409 for an overlapping booking."""
        first = _book(test_client).json()["appointment"]

        response = _book(test_client, "2025-03-03T10:15:00", patient_id="pat-2")

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "SLOT_CONFLICT"
        assert body["details"]["conflicting_appointment_id"] == first["id"]

    def test_outside_hours_conflict(self, test_client):
        response = _book(test_client, "2025-03-03T12:15:00")

        assert response.status_code == 409
        assert response.json()["details"]["reason"] == "outside_hours"

    def test_timezone_aware_rejected(self, test_client):
        response = _book(test_client, "2025-03-03T10:00:00+01:00")

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_malformed_body(self, test_client):
        response = test_client.post(f"{API}/appointments", json={"provider_id": PROVIDER_ID})

        assert response.status_code == 422
        assert response.json()["error"] is True

    def test_confirm_cancel_flow(self, test_client):
        """Should confirm, cancel and then refuse a second cancellation."""
        appointment_id = _book(test_client).json()["appointment"]["id"]

        confirmed = test_client.post(f"{API}/appointments/{appointment_id}/confirm")
        cancelled = test_client.post(
            f"{API}/appointments/{appointment_id}/cancel", json={"reason": "Travel", "cancelled_by": "patient"}
        )
        again = test_client.post(f"{API}/appointments/{appointment_id}/cancel", json={})

        assert confirmed.json()["status"] == "confirmed"
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancellation_reason"] == "Travel"
        assert again.status_code == 409
        assert again.json()["code"] == "INVALID_TRANSITION"

    def test_reschedule(self, test_client):
        appointment_id = _book(test_client).json()["appointment"]["id"]

        response = test_client.post(
            f"{API}/appointments/{appointment_id}/reschedule", json={"new_start_at": "2025-03-04T14:00:00"}
        )

        assert response.status_code == 200
        assert response.json()["start_at"] == "2025-03-04T14:00:00"

    def test_unknown_appointment(self, test_client):
        response = test_client.post(f"{API}/appointments/missing/confirm")

        assert response.status_code == 404


# ============================================================================
# Completion and payment requests
# ============================================================================


class TestCompletionEndpoints:
    """Tests for completion, resend and mark-paid."""

    def test_complete_paid(self, test_client):
        appointment_id = _book(test_client, channel="staff").json()["appointment"]["id"]

        response = test_client.post(
            f"{API}/appointments/{appointment_id}/complete",
            json={"line_items": [{"name": "Filling", "price_cents": 1500, "tooth_ref": "16"}], "payment_received": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["appointment"]["status"] == "completed"
        assert data["invoice"]["total_cents"] == 1500
        assert data["payment_request"] is None
        assert data["fully_succeeded"] is True

    def test_complete_unpaid_then_resend_and_pay(self, test_client):
        """Should email a payment request, resend it and record payment."""
        # Arrange
        appointment_id = _book(test_client, channel="staff").json()["appointment"]["id"]
        completion = test_client.post(
            f"{API}/appointments/{appointment_id}/complete",
            json={"line_items": [{"name": "Crown", "price_cents": 42000}]},
        ).json()
        payment_request_id = completion["payment_request"]["id"]

        # Act
        resent = test_client.post(f"{API}/payment-requests/{payment_request_id}/resend")
        paid = test_client.post(f"{API}/payment-requests/{payment_request_id}/mark-paid")
        resent_after_paid = test_client.post(f"{API}/payment-requests/{payment_request_id}/resend")

        # Assert
        assert completion["payment_request"]["sent_count"] == 1
        assert resent.json()["delivered"] is True
        assert resent.json()["payment_request"]["sent_count"] == 2
        assert paid.json()["status"] == "paid"
        assert resent_after_paid.status_code == 409

    def test_second_completion_returns_request(self, test_client):
        """Should refuse a second completion and echo the request for retry."""
        appointment_id = _book(test_client, channel="staff").json()["appointment"]["id"]
        payload = {"line_items": [{"name": "Filling", "price_cents": 1500}], "payment_received": True}
        test_client.post(f"{API}/appointments/{appointment_id}/complete", json=payload)

        response = test_client.post(f"{API}/appointments/{appointment_id}/complete", json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "COMPLETION_FAILED"
        assert body["step"] == "status"
        assert body["request"]["line_items"][0]["price_cents"] == 1500

    def test_unknown_payment_request(self, test_client):
        response = test_client.post(f"{API}/payment-requests/missing/mark-paid")

        assert response.status_code == 404


# ============================================================================
# Provider availability
# ============================================================================


class TestAvailabilityEndpoints:
    """Tests for weekly availability and absence management."""

    def test_get_availability(self, test_client):
        response = test_client.get(f"{API}/providers/{PROVIDER_ID}/availability")

        assert response.status_code == 200
        data = response.json()
        assert len(data["working_windows"]) == 5
        assert data["working_windows"][0] == {
            "day_of_week": 0,
            "start": "09:00:00",
            "end": "17:00:00",
            "break_start": "12:00:00",
            "break_end": "13:00:00",
        }
        assert data["exceptions"] == []

    def test_set_availability_changes_slots(self, test_client):
        """Should replace the week and list slots for the new hours only."""
        # Act
        response = test_client.put(
            f"{API}/providers/{PROVIDER_ID}/availability",
            json={
                "working_windows": [
                    {"day_of_week": 5, "start": "10:00", "end": "13:00", "break_start": "11:00", "break_end": "11:30"}
                ],
                "emergency_windows": [{"day_of_week": 5, "start": "12:30", "end": "13:00"}],
            },
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["emergency_windows"] == [{"day_of_week": 5, "start": "12:30:00", "end": "13:00:00"}]
        monday = test_client.get(f"{API}/providers/{PROVIDER_ID}/slots", params={"date": "2025-03-03"}).json()
        saturday = test_client.get(f"{API}/providers/{PROVIDER_ID}/slots", params={"date": "2025-03-08"}).json()
        assert monday["slots"] == []
        assert [(s["start_at"][11:16], s["available"]) for s in saturday["slots"]] == [
            ("10:00", True),
            ("10:30", True),
            ("11:30", True),
            ("12:00", True),
            ("12:30", False),
        ]

    @pytest.mark.parametrize(
        "window",
        [
            {"day_of_week": 1, "start": "12:00", "end": "09:00"},
            {"day_of_week": 1, "start": "09:00", "end": "17:00", "break_start": "12:00"},
            {"day_of_week": 7, "start": "09:00", "end": "17:00"},
        ],
    )
    def test_invalid_window_rejected(self, test_client, window):
        response = test_client.put(f"{API}/providers/{PROVIDER_ID}/availability", json={"working_windows": [window]})

        assert response.status_code == 422
        assert response.json()["error"] is True

    def test_overlapping_windows_rejected(self, test_client):
        """Should answer 422 and keep the stored week."""
        response = test_client.put(
            f"{API}/providers/{PROVIDER_ID}/availability",
            json={
                "working_windows": [
                    {"day_of_week": 0, "start": "09:00", "end": "13:00"},
                    {"day_of_week": 0, "start": "12:00", "end": "17:00"},
                ]
            },
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        stored = test_client.get(f"{API}/providers/{PROVIDER_ID}/availability").json()
        assert len(stored["working_windows"]) == 5

    def test_unknown_provider(self, test_client):
        response = test_client.put(f"{API}/providers/nobody/availability", json={"working_windows": []})

        assert response.status_code == 404

    def test_vacation_needs_approval(self, test_client):
        """Should block bookings only after the vacation is approved."""
        # Arrange
        created = test_client.post(
            f"{API}/providers/{PROVIDER_ID}/exceptions",
            json={"start_date": "2025-03-03", "end_date": "2025-03-04", "kind": "vacation", "reason": "Conference"},
        )
        exception_id = created.json()["id"]
        slots_before = test_client.get(f"{API}/providers/{PROVIDER_ID}/slots", params={"date": "2025-03-03"}).json()

        # Act
        approved = test_client.post(f"{API}/providers/{PROVIDER_ID}/exceptions/{exception_id}/approve")

        # Assert
        assert created.status_code == 201
        assert created.json()["approved"] is False
        assert slots_before["available_count"] == 14
        assert approved.status_code == 200
        assert approved.json()["approved"] is True
        slots_after = test_client.get(f"{API}/providers/{PROVIDER_ID}/slots", params={"date": "2025-03-03"}).json()
        assert slots_after["slots"] == []
        refused = _book(test_client)
        assert refused.status_code == 409
        assert refused.json()["details"]["reason"] == "on_exception"

    def test_inverted_exception_dates(self, test_client):
        response = test_client.post(
            f"{API}/providers/{PROVIDER_ID}/exceptions", json={"start_date": "2025-03-05", "end_date": "2025-03-03"}
        )

        assert response.status_code == 422

    def test_approve_unknown_exception(self, test_client):
        response = test_client.post(f"{API}/providers/{PROVIDER_ID}/exceptions/missing/approve")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


# ============================================================================
# Reminders
# ============================================================================


class TestReminderEndpoints:
    """Tests for the reminder job trigger."""

    def test_run_sends_due_reminders(self, test_client, container):
        """Should remind the appointment starting two hours after the run."""
        appointment_id = _book(test_client, "2025-03-03T11:00:00").json()["appointment"]["id"]
        _book(test_client, "2025-03-03T14:00:00")

        response = test_client.post(f"{API}/reminders/run", json={"now": "2025-03-03T09:00:00"})

        assert response.status_code == 200
        data = response.json()
        assert data["sent_count"] == 1
        assert data["sent"][0] == {"appointment_id": appointment_id, "hours_before": 2, "success": True, "error": None}
        (message,) = container.gateway.sent_of_kind(NotificationKind.APPOINTMENT_REMINDER)
        assert "Dr. Rivera" in message["body"]

    def test_failures_listed_not_raised(self, test_client, container):
        _book(test_client, "2025-03-04T09:00:00")
        container.gateway.fail_kinds = {NotificationKind.APPOINTMENT_REMINDER}

        response = test_client.post(f"{API}/reminders/run", json={"now": "2025-03-03T08:50:00"})

        assert response.status_code == 200
        assert response.json()["failed_count"] == 1
        assert response.json()["failed"][0]["hours_before"] == 24

    def test_aware_time_rejected(self, test_client):
        response = test_client.post(f"{API}/reminders/run", json={"now": "2025-03-03T09:00:00+01:00"})

        assert response.status_code == 422
