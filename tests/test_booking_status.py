"""Tests for moving bookings through their lifecycle."""
from __future__ import annotations

import pytest

from salonease.bookings import check_transition, parse_status
from salonease.enums import BOOKING_TRANSITIONS, BookingStatus
from salonease.errors import ValidationError

from conftest import auth_headers


def _patch(client, booking_id, token, status):
    return client.patch(
        f"/bookings/{booking_id}/status", json={"status": status}, headers=auth_headers(token)
    )


def test_owner_confirms_booking(client, owner_token, booking) -> None:
    response = _patch(client, booking["id"], owner_token, "confirmed")

    assert response.status_code == 200
    assert response.get_json()["booking"]["status"] == "confirmed"


def test_customer_cannot_change_status(client, customer_token, booking) -> None:
    response = _patch(client, booking["id"], customer_token, "confirmed")

    assert response.status_code == 403


def test_other_owner_cannot_change_status(client, register, booking) -> None:
    intruder = register("eve@x.com", role="salon_owner", name="Eve")

    response = _patch(client, booking["id"], intruder, "confirmed")

    assert response.status_code == 403


def test_admin_can_change_status(client, admin_token, booking) -> None:
    response = _patch(client, booking["id"], admin_token, "confirmed")

    assert response.status_code == 200


def test_unknown_status_rejected(client, owner_token, booking) -> None:
    response = _patch(client, booking["id"], owner_token, "done")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_status"


def test_missing_status_rejected(client, owner_token, booking) -> None:
    response = client.patch(
        f"/bookings/{booking['id']}/status", json={}, headers=auth_headers(owner_token)
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_status"


def test_pending_cannot_jump_to_completed(client, owner_token, booking) -> None:
    response = _patch(client, booking["id"], owner_token, "completed")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_transition"


def test_full_lifecycle(client, owner_token, booking) -> None:
    for status in ("confirmed", "in_progress", "completed"):
        response = _patch(client, booking["id"], owner_token, status)
        assert response.status_code == 200, response.get_json()

    final = response.get_json()["booking"]
    assert final["status"] == "completed"
    assert final["canBeCancelled"] is False
    assert _patch(client, booking["id"], owner_token, "cancelled").status_code == 400


def test_owner_cancel_via_status_stamps_cancellation(client, owner_token, booking) -> None:
    response = _patch(client, booking["id"], owner_token, "cancelled")

    body = response.get_json()["booking"]
    assert body["status"] == "cancelled"
    assert body["cancelledBy"] == "salon_owner"
    assert body["cancellationDate"] is not None


def test_status_of_unknown_booking_404(client, owner_token) -> None:
    response = _patch(client, 9999, owner_token, "confirmed")

    assert response.status_code == 404


def test_terminal_statuses_have_no_exits() -> None:
    terminal = {status for status in BookingStatus if status.is_terminal}

    assert terminal == {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    assert all(BOOKING_TRANSITIONS[status] == frozenset() for status in terminal)


def test_parse_status_rejects_unknown_value() -> None:
    assert parse_status("no_show") is BookingStatus.NO_SHOW
    with pytest.raises(ValidationError):
        parse_status("archived")


def test_check_transition() -> None:
    check_transition("confirmed", BookingStatus.NO_SHOW)
    check_transition("confirmed", BookingStatus.COMPLETED)
    with pytest.raises(ValidationError):
        check_transition("in_progress", BookingStatus.CANCELLED)
