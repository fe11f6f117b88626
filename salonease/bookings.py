"""
bookings.py
-----------
Booking lifecycle: creation, field updates, status transitions,
cancellation and the single review a customer may leave on a completed
booking.

Notes:
- Status moves are checked against ``BOOKING_TRANSITIONS``; values outside
  the enum are rejected before they reach the database.
- Overlapping bookings are allowed; there is no slot conflict detection.
- Salon/service rating aggregates are written after the review itself and
  are best-effort: a failed aggregate write is logged and the review stays.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Mapping

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from . import policy, schedule
from . import validation as v
from .config import Settings
from .enums import (BOOKING_TRANSITIONS, PAYMENT_METHODS, PAYMENT_STATUSES,
                    BookingStatus, Role)
from .errors import ConflictError, NotFoundError, ValidationError
from .extensions import db
from .models import Booking, Salon, Service, User
from .policy import Actor

MAX_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 200
MAX_REVIEW_LENGTH = 1000

# Booking columns a PUT may overwrite; status and review have their own operations.
EDITABLE_FIELDS = (
    "appointmentDate",
    "startTime",
    "endTime",
    "duration",
    "staff",
    "customerNotes",
    "salonNotes",
    "totalAmount",
    "currency",
    "paymentStatus",
    "paymentMethod",
    "cancellationReason",
)

# Salon-side fields the customer cannot set.
OWNER_ONLY_FIELDS = ("salonNotes", "paymentStatus")


def parse_status(value: object) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in BookingStatus)
        raise ValidationError(
            f"Status must be one of: {allowed}", error="invalid_status"
        ) from None


def check_transition(current: str, new: BookingStatus) -> None:
    current_status = BookingStatus(current)
    if new not in BOOKING_TRANSITIONS[current_status]:
        raise ValidationError(
            f"Cannot change booking status from {current_status.value} to {new.value}",
            error="invalid_transition",
        )


def _rating(value: object) -> int:
    if value is None:
        raise ValidationError("Please provide a rating", error="invalid_rating")
    try:
        return v.integer(value, "rating", minimum=1, maximum=5)
    except ValidationError as exc:
        raise ValidationError(
            "Rating must be an integer between 1 and 5", error="invalid_rating"
        ) from exc


class BookingManager:
    def __init__(self, settings: Settings, clock: Callable[[], datetime] = datetime.now):
        self.settings = settings
        self.clock = clock

    # -- reads -------------------------------------------------------------

    def _load(self, booking_id: int) -> Booking:
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def _parties(booking: Booking) -> set[int]:
        owner_id = booking.salon.owner_id if booking.salon else None
        return {booking.customer_id, owner_id} - {None}

    def get(self, actor: Actor, booking_id: int) -> Booking:
        booking = self._load(booking_id)
        policy.require(actor, owner_id=self._parties(booking))
        return booking

    def for_customer(self, actor: Actor) -> list[Booking]:
        return (
            Booking.query.filter_by(customer_id=actor.id)
            .order_by(Booking.appointment_date.desc(), Booking.start_time.desc())
            .all()
        )

    def for_salon(self, actor: Actor, salon_id: int) -> list[Booking]:
        salon = db.session.get(Salon, salon_id)
        if salon is None:
            raise NotFoundError("Salon not found")
        policy.require(actor, owner_id=salon.owner_id)
        return (
            Booking.query.filter_by(salon_id=salon_id)
            .order_by(Booking.appointment_date, Booking.start_time)
            .all()
        )

    def for_owner(self, actor: Actor) -> list[Booking]:
        salon = Salon.query.filter_by(owner_id=actor.id).first()
        if salon is None:
            raise NotFoundError("Salon not found for this owner")
        return self.for_salon(actor, salon.salon_id)

    def serialize(self, booking: Booking) -> dict[str, object]:
        return booking.to_dict(now=self.clock(), strict=self.settings.strict_time_windows)

    # -- writes ------------------------------------------------------------

    def _validate_window(self, booking: Booking) -> None:
        schedule.validate_window(
            booking.appointment_date,
            booking.start_time,
            booking.end_time,
            today=self.clock().date(),
        )

    def create(self, actor: Actor, payload: Mapping[str, object]) -> Booking:
        policy.require(
            actor,
            allowed_roles=[Role.CUSTOMER],
            message="Only customers can create bookings.",
        )
        salon_id = payload.get("salon")
        service_id = payload.get("service")
        if not salon_id or not service_id:
            raise ValidationError("salon and service are required")
        for key in ("appointmentDate", "startTime", "endTime"):
            if not payload.get(key):
                raise ValidationError(f"Please provide {key}")

        salon = db.session.get(Salon, v.integer(salon_id, "salon"))
        if salon is None or not salon.is_active:
            raise NotFoundError("Salon not found")
        service = db.session.get(Service, v.integer(service_id, "service"))
        if service is None or not service.is_active:
            raise NotFoundError("Service not found")
        if service.salon_id != salon.salon_id:
            raise ValidationError("Service does not belong to this salon")

        booking = Booking(
            customer_id=actor.id,
            salon_id=salon.salon_id,
            service_id=service.service_id,
            status=BookingStatus.PENDING.value,
            duration_minutes=service.duration_minutes,
            total_amount=service.price,
            currency=service.currency,
        )
        self._apply_fields(booking, payload)
        self._validate_window(booking)

        db.session.add(booking)
        db.session.commit()
        current_app.logger.info(
            "Booking %s created by customer %s for salon %s",
            booking.booking_id,
            actor.id,
            salon.salon_id,
        )
        return booking

    def _apply_fields(self, booking: Booking, payload: Mapping[str, object]) -> None:
        if "appointmentDate" in payload:
            booking.appointment_date = schedule.parse_date(payload["appointmentDate"])
        if "startTime" in payload:
            booking.start_time = schedule.normalize_time(payload["startTime"])
        if "endTime" in payload:
            booking.end_time = schedule.normalize_time(payload["endTime"])
        if payload.get("duration") is not None:
            booking.duration_minutes = v.integer(payload["duration"], "duration", minimum=1)
        if "staff" in payload:
            staff_id = payload.get("staff")
            if staff_id is not None:
                staff_id = v.integer(staff_id, "staff")
                if db.session.get(User, staff_id) is None:
                    raise NotFoundError("Staff member not found")
            booking.staff_id = staff_id
        if "customerNotes" in payload:
            booking.customer_notes = v.text(
                payload, "customerNotes", label="Customer notes", max_length=MAX_NOTES_LENGTH
            )
        if "salonNotes" in payload:
            booking.salon_notes = v.text(
                payload, "salonNotes", label="Salon notes", max_length=MAX_NOTES_LENGTH
            )
        if payload.get("totalAmount") is not None:
            booking.total_amount = v.number(payload["totalAmount"], "totalAmount", minimum=0)
        if payload.get("currency"):
            booking.currency = (v.text(payload, "currency", max_length=3) or "USD").upper()
        if "paymentStatus" in payload:
            booking.payment_status = v.choice(
                payload["paymentStatus"], PAYMENT_STATUSES, "paymentStatus"
            )
        if "paymentMethod" in payload:
            booking.payment_method = v.choice(
                payload["paymentMethod"], PAYMENT_METHODS, "paymentMethod"
            )
        if "cancellationReason" in payload:
            booking.cancellation_reason = v.text(
                payload,
                "cancellationReason",
                label="Cancellation reason",
                max_length=MAX_REASON_LENGTH,
            )

    def update(self, actor: Actor, booking_id: int, payload: Mapping[str, object]) -> Booking:
        booking = self._load(booking_id)
        policy.require(actor, owner_id=self._parties(booking))

        locked = sorted(set(payload) - set(EDITABLE_FIELDS))
        if locked:
            raise ValidationError(f"These fields cannot be updated here: {', '.join(locked)}")
        if any(key in payload for key in OWNER_ONLY_FIELDS):
            policy.require(
                actor,
                owner_id=booking.salon.owner_id,
                message="Only the salon owner or an admin can set salon notes or payment status",
            )

        self._apply_fields(booking, payload)
        self._validate_window(booking)
        db.session.commit()
        return booking

    def update_status(self, actor: Actor, booking_id: int, value: object) -> Booking:
        booking = self._load(booking_id)
        policy.require(
            actor,
            owner_id=booking.salon.owner_id,
            message="Only the salon owner or an admin can change booking status",
        )
        new_status = parse_status(value)
        check_transition(booking.status, new_status)

        previous = booking.status
        booking.status = new_status.value
        if new_status is BookingStatus.CANCELLED:
            self._stamp_cancellation(booking, actor)
        db.session.commit()
        current_app.logger.info(
            "Booking %s moved from %s to %s by user %s",
            booking_id,
            previous,
            new_status.value,
            actor.id,
        )
        return booking

    def _stamp_cancellation(self, booking: Booking, actor: Actor) -> None:
        booking.cancellation_date = self.clock()
        booking.cancelled_by = actor.role

    def cancel(self, actor: Actor, booking_id: int, reason: object = None) -> Booking:
        booking = self._load(booking_id)
        policy.require(actor, owner_id=self._parties(booking))
        check_transition(booking.status, BookingStatus.CANCELLED)

        if self.settings.enforce_cancellation_window and not schedule.can_be_cancelled(
            booking.status,
            booking.appointment_datetime,
            self.clock(),
            strict=self.settings.strict_time_windows,
        ):
            raise ValidationError(
                f"Bookings can only be cancelled more than "
                f"{schedule.CANCELLATION_NOTICE_HOURS} hours in advance",
                error="cancellation_window",
            )

        if reason is not None:
            booking.cancellation_reason = v.text(
                {"reason": reason},
                "reason",
                label="Cancellation reason",
                max_length=MAX_REASON_LENGTH,
            )
        booking.status = BookingStatus.CANCELLED.value
        self._stamp_cancellation(booking, actor)
        db.session.commit()
        current_app.logger.info("Booking %s cancelled by %s %s", booking_id, actor.role, actor.id)
        return booking

    # -- reviews -----------------------------------------------------------

    def _update_aggregates(self, booking: Booking, apply: Callable) -> None:
        try:
            for target in (booking.salon, booking.service):
                if target is not None:
                    apply(target)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception(
                "Failed to update rating aggregates for booking %s",
                booking.booking_id,
                exc_info=exc,
            )

    def add_review(self, actor: Actor, booking_id: int, rating: object, text: object) -> Booking:
        booking = self._load(booking_id)
        policy.require_owner(actor, booking.customer_id)
        if booking.status != BookingStatus.COMPLETED.value:
            raise ValidationError(
                "You can only review completed bookings.", error="booking_not_completed"
            )
        if booking.review is not None:
            raise ConflictError("Review already exists for this booking.")

        score = _rating(rating)
        booking.rating = score
        booking.review_text = v.text(
            {"review": text}, "review", label="a review", required=True, max_length=MAX_REVIEW_LENGTH
        )
        booking.review_date = self.clock()
        db.session.commit()

        self._update_aggregates(booking, lambda target: target.add_rating(score))
        return booking

    def update_review(
        self, actor: Actor, booking_id: int, payload: Mapping[str, object]
    ) -> Booking:
        booking = self._load(booking_id)
        policy.require_owner(actor, booking.customer_id)
        previous = booking.review
        if previous is None:
            raise ValidationError("No review to update.", error="review_not_found")

        score = _rating(payload["rating"]) if "rating" in payload else previous.rating
        booking.rating = score
        if "review" in payload:
            booking.review_text = v.text(
                payload, "review", label="a review", required=True, max_length=MAX_REVIEW_LENGTH
            )
        booking.review_date = self.clock()
        db.session.commit()

        if score != previous.rating:
            self._update_aggregates(
                booking, lambda target: target.replace_rating(previous.rating, score)
            )
        return booking

    def delete_review(self, actor: Actor, booking_id: int) -> Booking:
        booking = self._load(booking_id)
        policy.require(actor, owner_id=booking.customer_id)
        previous = booking.review
        if previous is None:
            raise ValidationError("No review to delete.", error="review_not_found")

        booking.rating = None
        booking.review_text = None
        booking.review_date = None
        db.session.commit()

        self._update_aggregates(booking, lambda target: target.remove_rating(previous.rating))
        return booking

    @staticmethod
    def reviews_for(**filters: int) -> list[dict[str, object]]:
        bookings = (
            Booking.query.filter_by(**filters)
            .filter(Booking.rating.isnot(None))
            .order_by(Booking.review_date.desc())
            .all()
        )
        reviews = []
        for booking in bookings:
            entry = {"id": booking.booking_id, **booking.review.to_dict()}
            customer = booking.customer
            entry["customer"] = (
                {"id": customer.user_id, "name": customer.name, "avatar": customer.avatar_url}
                if customer
                else None
            )
            reviews.append(entry)
        return reviews
