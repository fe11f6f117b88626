"""Booking and review routes."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from .auth import current_actor, login_required, roles_required
from .bookings import BookingManager
from .enums import Role
from .errors import ValidationError
from .routes import json_payload
from .validation import integer

bp_bookings = Blueprint("bookings", __name__)


def _manager() -> BookingManager:
    return BookingManager(current_app.config["SETTINGS"])


@bp_bookings.post("/bookings")
@roles_required(Role.CUSTOMER)
def create_booking() -> tuple[dict[str, object], int]:
    """Create a new booking for the calling customer.
    ---
    tags:
      - Bookings
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            salon:
              type: integer
            service:
              type: integer
            appointmentDate:
              type: string
              format: date
            startTime:
              type: string
              example: "10:00"
            endTime:
              type: string
              example: "10:30"
            duration:
              type: integer
            totalAmount:
              type: number
            currency:
              type: string
            staff:
              type: integer
            customerNotes:
              type: string
          required:
            - salon
            - service
            - appointmentDate
            - startTime
            - endTime
    responses:
      201:
        description: Booking created with status pending
      400:
        description: Invalid time format, start after end, or date in the past
      404:
        description: Salon or service not found
    """
    manager = _manager()
    booking = manager.create(current_actor(), json_payload())
    return jsonify({"success": True, "booking": manager.serialize(booking)}), 201


@bp_bookings.get("/bookings/user")
@roles_required(Role.CUSTOMER)
def list_user_bookings() -> tuple[dict[str, object], int]:
    manager = _manager()
    bookings = manager.for_customer(current_actor())
    return jsonify({"success": True, "bookings": [manager.serialize(b) for b in bookings]}), 200


@bp_bookings.get("/bookings/salon")
@roles_required(Role.SALON_OWNER)
def list_current_salon_bookings() -> tuple[dict[str, object], int]:
    manager = _manager()
    bookings = manager.for_owner(current_actor())
    return jsonify({"success": True, "bookings": [manager.serialize(b) for b in bookings]}), 200


@bp_bookings.get("/bookings/salon/<int:salon_id>")
@roles_required(Role.SALON_OWNER, Role.ADMIN)
def list_salon_bookings(salon_id: int) -> tuple[dict[str, object], int]:
    manager = _manager()
    bookings = manager.for_salon(current_actor(), salon_id)
    return jsonify({"success": True, "bookings": [manager.serialize(b) for b in bookings]}), 200


@bp_bookings.get("/bookings/<int:booking_id>")
@login_required
def get_booking(booking_id: int) -> tuple[dict[str, object], int]:
    manager = _manager()
    booking = manager.get(current_actor(), booking_id)
    return jsonify({"success": True, "booking": manager.serialize(booking)}), 200


@bp_bookings.put("/bookings/<int:booking_id>")
@login_required
def update_booking(booking_id: int) -> tuple[dict[str, object], int]:
    """Overwrite editable booking fields; date and time rules are re-checked.
    ---
    tags:
      - Bookings
    responses:
      200:
        description: Updated booking
      400:
        description: Invalid field or non-editable field supplied
      403:
        description: Caller is not the customer, the salon owner or an admin
    """
    manager = _manager()
    booking = manager.update(current_actor(), booking_id, json_payload())
    return jsonify({"success": True, "booking": manager.serialize(booking)}), 200


@bp_bookings.patch("/bookings/<int:booking_id>/status")
@roles_required(Role.SALON_OWNER, Role.ADMIN)
def update_booking_status(booking_id: int) -> tuple[dict[str, object], int]:
    """Move a booking along its lifecycle.
    ---
    tags:
      - Bookings
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            status:
              type: string
              enum: [pending, confirmed, in_progress, completed, cancelled, no_show]
    responses:
      200:
        description: Status updated
      400:
        description: Unknown status or illegal transition
      403:
        description: Caller does not own the booking's salon
      404:
        description: Booking not found
    """
    payload = json_payload()
    if "status" not in payload:
        raise ValidationError("status is required", error="invalid_status")
    manager = _manager()
    booking = manager.update_status(current_actor(), booking_id, payload["status"])
    return jsonify({"success": True, "booking": manager.serialize(booking)}), 200


@bp_bookings.delete("/bookings/<int:booking_id>")
@login_required
def cancel_booking(booking_id: int) -> tuple[dict[str, object], int]:
    payload = json_payload()
    manager = _manager()
    booking = manager.cancel(current_actor(), booking_id, payload.get("reason"))
    return jsonify({
        "success": True,
        "message": "Booking cancelled.",
        "booking": manager.serialize(booking),
    }), 200


@bp_bookings.post("/reviews")
@roles_required(Role.CUSTOMER)
def add_review() -> tuple[dict[str, object], int]:
    """Review a completed booking. Only one review per booking.
    ---
    tags:
      - Reviews
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            bookingId:
              type: integer
            rating:
              type: integer
              minimum: 1
              maximum: 5
            review:
              type: string
    responses:
      201:
        description: Review added
      400:
        description: Booking not completed, review exists, or invalid rating
      403:
        description: Caller is not the booking's customer
    """
    payload = json_payload()
    if not payload.get("bookingId"):
        raise ValidationError("bookingId is required")
    manager = _manager()
    booking = manager.add_review(
        current_actor(),
        integer(payload["bookingId"], "bookingId"),
        payload.get("rating"),
        payload.get("review"),
    )
    return jsonify({
        "success": True,
        "message": "Review added.",
        "review": booking.review.to_dict(),
    }), 201


@bp_bookings.put("/reviews/<int:booking_id>")
@roles_required(Role.CUSTOMER)
def update_review(booking_id: int) -> tuple[dict[str, object], int]:
    booking = _manager().update_review(current_actor(), booking_id, json_payload())
    return jsonify({
        "success": True,
        "message": "Review updated.",
        "review": booking.review.to_dict(),
    }), 200


@bp_bookings.delete("/reviews/<int:booking_id>")
@login_required
def delete_review(booking_id: int) -> tuple[dict[str, object], int]:
    _manager().delete_review(current_actor(), booking_id)
    return jsonify({"success": True, "message": "Review deleted."}), 200


@bp_bookings.get("/reviews/salon/<int:salon_id>")
def list_salon_reviews(salon_id: int) -> tuple[dict[str, object], int]:
    reviews = BookingManager.reviews_for(salon_id=salon_id)
    return jsonify({"success": True, "reviews": reviews}), 200


@bp_bookings.get("/reviews/service/<int:service_id>")
def list_service_reviews(service_id: int) -> tuple[dict[str, object], int]:
    reviews = BookingManager.reviews_for(service_id=service_id)
    return jsonify({"success": True, "reviews": reviews}), 200
