"""Appointment time parsing, validation and the values derived from it.

Appointment dates and ``HH:MM`` times are salon-local wall-clock values, so
everything here works on naive datetimes.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime, time

from .enums import BookingStatus
from .errors import ValidationError

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")

CANCELLATION_NOTICE_HOURS = 24
RESCHEDULE_NOTICE_HOURS = 2


def normalize_time(value: object) -> str:
    """Return ``value`` as a zero-padded ``HH:MM`` string."""
    match = TIME_PATTERN.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValidationError("Invalid time format. Use HH:MM format.", error="invalid_time")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def parse_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise ValidationError(
        "appointmentDate must be a valid date (YYYY-MM-DD)", error="invalid_date"
    )


def validate_window(appointment_date: date, start_time: str, end_time: str, today: date) -> None:
    """Check the ordering and not-in-the-past rules for an appointment."""
    if start_time >= end_time:
        raise ValidationError("Start time must be before end time.", error="invalid_time")
    if appointment_date < today:
        raise ValidationError("Appointment date cannot be in the past.", error="invalid_date")


def combine(appointment_date: date, hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime.combine(appointment_date, time(int(hours), int(minutes)))


def hours_until(moment: datetime, now: datetime) -> float:
    return (moment - now).total_seconds() / 3600


def _within_notice(status: str, moment: datetime, now: datetime, threshold: int, strict: bool) -> bool:
    remaining = hours_until(moment, now)
    if strict:
        return status in (BookingStatus.PENDING, BookingStatus.CONFIRMED) and remaining > threshold
    # Pending bookings pass regardless of the remaining time.
    return status == BookingStatus.PENDING or (
        status == BookingStatus.CONFIRMED and remaining > threshold
    )


def can_be_cancelled(status: str, moment: datetime, now: datetime, strict: bool = False) -> bool:
    return _within_notice(status, moment, now, CANCELLATION_NOTICE_HOURS, strict)


def can_be_rescheduled(status: str, moment: datetime, now: datetime, strict: bool = False) -> bool:
    return _within_notice(status, moment, now, RESCHEDULE_NOTICE_HOURS, strict)


def time_until(moment: datetime, now: datetime) -> str:
    seconds = (moment - now).total_seconds()
    if seconds < 0:
        return "Past"
    days = math.ceil(seconds / 86400)
    hours = math.ceil(seconds / 3600)
    if days > 1:
        return f"{days} days"
    if hours > 1:
        return f"{hours} hours"
    return "Less than 1 hour"


def format_appointment(appointment_date: date, start_time: str) -> str:
    return f"{appointment_date.strftime('%A, %B')} {appointment_date.day}, {appointment_date.year} at {start_time}"
