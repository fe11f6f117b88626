"""Closed value sets shared by the models and the domain modules."""
from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    CUSTOMER = "customer"
    SALON_OWNER = "salon_owner"
    ADMIN = "admin"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return not BOOKING_TRANSITIONS[self]


BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {
            BookingStatus.IN_PROGRESS,
            BookingStatus.COMPLETED,
            BookingStatus.CANCELLED,
            BookingStatus.NO_SHOW,
        }
    ),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.NO_SHOW}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

CATEGORIES = ("hair", "nail", "spa", "massage", "beauty", "barber", "wellness", "other")

SUBCATEGORIES = (
    "haircut",
    "coloring",
    "styling",
    "manicure",
    "pedicure",
    "facial",
    "massage",
    "waxing",
    "makeup",
    "eyebrows",
    "lashes",
    "other",
)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

PAYMENT_STATUSES = ("pending", "paid", "refunded", "failed")
PAYMENT_METHODS = ("cash", "card", "online", "other")


def values(enum_cls: type[Enum]) -> tuple[str, ...]:
    return tuple(member.value for member in enum_cls)
