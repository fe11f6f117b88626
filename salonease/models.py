"""Database models for the SalonEase backend."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from . import schedule
from .enums import (CATEGORIES, PAYMENT_METHODS, PAYMENT_STATUSES, SUBCATEGORIES,
                    BookingStatus, Role, values)
from .extensions import db


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value else None


class RatingAggregateMixin:
    """Weighted running average of the ratings left on a catalog entry."""

    rating_average = db.Column(db.Float, nullable=False, default=0.0)
    rating_count = db.Column(db.Integer, nullable=False, default=0)

    def add_rating(self, rating: int) -> None:
        total = (self.rating_average or 0.0) * (self.rating_count or 0) + rating
        self.rating_count = (self.rating_count or 0) + 1
        self.rating_average = total / self.rating_count

    def replace_rating(self, old: int, new: int) -> None:
        if not self.rating_count:
            self.add_rating(new)
            return
        total = self.rating_average * self.rating_count - old + new
        self.rating_average = min(5.0, max(0.0, total / self.rating_count))

    def remove_rating(self, rating: int) -> None:
        if not self.rating_count or self.rating_count <= 1:
            self.rating_count = 0
            self.rating_average = 0.0
            return
        total = self.rating_average * self.rating_count - rating
        self.rating_count -= 1
        self.rating_average = min(5.0, max(0.0, total / self.rating_count))

    def rating_dict(self) -> dict[str, object]:
        return {"average": round(self.rating_average or 0.0, 2), "count": self.rating_count or 0}


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(
        db.Enum(
            *values(Role),
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default=Role.CUSTOMER.value,
    )
    phone = db.Column(db.String(30))
    avatar_url = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    auth_account = db.relationship(
        "AuthAccount", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    salon = db.relationship("Salon", back_populates="owner", uselist=False)

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "avatar": self.avatar_url,
        }

    def to_dict(self) -> dict[str, object]:
        payload = self.to_dict_basic()
        payload.update(
            {
                "phone": self.phone,
                "isActive": bool(self.is_active),
                "lastLogin": _iso(self.auth_account.last_login_at) if self.auth_account else None,
                "createdAt": _iso(self.created_at),
                "updatedAt": _iso(self.updated_at),
            }
        )
        return payload


class AuthAccount(db.Model):
    """Credentials kept apart from the profile so they never leak into serialization."""

    __tablename__ = "auth_accounts"

    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), primary_key=True)
    password_hash = db.Column(db.String(255), nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    user = db.relationship("User", back_populates="auth_account")


class Salon(RatingAggregateMixin, db.Model):
    __tablename__ = "salons"

    salon_id = db.Column(db.Integer, primary_key=True)
    # Unique: an owner registers at most one salon.
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, unique=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(1000))
    category = db.Column(
        db.Enum(*CATEGORIES, name="salon_category", native_enum=False, validate_strings=True),
        nullable=False,
    )
    specialties = db.Column(db.JSON, nullable=False, default=list)
    street = db.Column(db.String(150), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(100), nullable=False)
    zip_code = db.Column(db.String(20), nullable=False)
    country = db.Column(db.String(100), nullable=False, default="United States")
    longitude = db.Column(db.Float)
    latitude = db.Column(db.Float)
    phone = db.Column(db.String(30), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    website = db.Column(db.String(255))
    working_hours = db.Column(db.JSON, nullable=False, default=list)
    logo_url = db.Column(db.String(255))
    images = db.Column(db.JSON, nullable=False, default=list)
    is_open = db.Column(db.Boolean, nullable=False, default=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    owner = db.relationship("User", back_populates="salon")
    services = db.relationship("Service", back_populates="salon", lazy="dynamic")

    @property
    def full_address(self) -> str:
        parts = [self.street, self.city, self.state, self.zip_code, self.country]
        return ", ".join(part for part in parts if part)

    def is_currently_open(self, now: datetime | None = None) -> bool:
        if not self.is_open:
            return False
        now = now or datetime.now()
        weekday = now.strftime("%A").lower()
        today = next((h for h in self.working_hours or [] if h.get("day") == weekday), None)
        if not today or not today.get("isOpen", True):
            return False
        current = now.strftime("%H:%M")
        return (today.get("openTime") or "") <= current <= (today.get("closeTime") or "")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.salon_id,
            "owner": self.owner.to_dict_basic() if self.owner else None,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "specialties": list(self.specialties or []),
            "address": {
                "street": self.street,
                "city": self.city,
                "state": self.state,
                "zipCode": self.zip_code,
                "country": self.country,
            },
            "fullAddress": self.full_address,
            "location": {
                "type": "Point",
                "coordinates": [self.longitude, self.latitude]
                if self.longitude is not None and self.latitude is not None
                else [],
            },
            "contact": {"phone": self.phone, "email": self.email, "website": self.website},
            "workingHours": list(self.working_hours or []),
            "logo": self.logo_url,
            "images": list(self.images or []),
            "isOpen": bool(self.is_open),
            "isVerified": bool(self.is_verified),
            "isFeatured": bool(self.is_featured),
            "isActive": bool(self.is_active),
            "isCurrentlyOpen": self.is_currently_open(),
            "rating": self.rating_dict(),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Service(RatingAggregateMixin, db.Model):
    __tablename__ = "services"

    service_id = db.Column(db.Integer, primary_key=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500))
    category = db.Column(
        db.Enum(*CATEGORIES, name="service_category", native_enum=False, validate_strings=True),
        nullable=False,
    )
    subcategory = db.Column(
        db.Enum(*SUBCATEGORIES, name="service_subcategory", native_enum=False, validate_strings=True),
        nullable=False,
    )
    price = db.Column(db.Float, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    duration_minutes = db.Column(db.Integer, nullable=False)
    is_popular = db.Column(db.Boolean, nullable=False, default=False)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    image_url = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    salon = db.relationship("Salon", back_populates="services")

    @property
    def formatted_duration(self) -> str:
        hours, minutes = divmod(self.duration_minutes or 0, 60)
        if hours and minutes:
            return f"{hours}h {minutes}m"
        if hours:
            return f"{hours}h"
        return f"{minutes}m"

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.service_id,
            "salon": self.salon_id,
            "salonName": self.salon.name if self.salon else None,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "subcategory": self.subcategory,
            "price": self.price,
            "currency": self.currency,
            "duration": self.duration_minutes,
            "formattedDuration": self.formatted_duration,
            "isPopular": bool(self.is_popular),
            "isFeatured": bool(self.is_featured),
            "image": self.image_url,
            "isActive": bool(self.is_active),
            "reviews": self.rating_dict(),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class Review:
    rating: int
    text: str | None
    reviewed_at: datetime | None

    def to_dict(self) -> dict[str, object]:
        return {"rating": self.rating, "review": self.text, "reviewDate": _iso(self.reviewed_at)}


class Booking(db.Model):
    """A customer's appointment for one service at one salon."""

    __tablename__ = "bookings"

    booking_id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.service_id"), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=True)
    appointment_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    status = db.Column(
        db.Enum(
            *values(BookingStatus),
            name="booking_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default=BookingStatus.PENDING.value,
    )
    total_amount = db.Column(db.Float, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    payment_status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name="payment_status", native_enum=False, validate_strings=True),
        nullable=False,
        default="pending",
    )
    payment_method = db.Column(
        db.Enum(*PAYMENT_METHODS, name="payment_method", native_enum=False, validate_strings=True),
        nullable=False,
        default="cash",
    )
    customer_notes = db.Column(db.String(500))
    salon_notes = db.Column(db.String(500))
    cancellation_reason = db.Column(db.String(200))
    cancellation_date = db.Column(db.DateTime)
    cancelled_by = db.Column(db.String(20))
    rating = db.Column(db.Integer)
    review_text = db.Column(db.String(1000))
    review_date = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    customer = db.relationship("User", foreign_keys=[customer_id])
    staff = db.relationship("User", foreign_keys=[staff_id])
    salon = db.relationship("Salon")
    service = db.relationship("Service")

    @property
    def review(self) -> Review | None:
        if self.rating is None:
            return None
        return Review(rating=self.rating, text=self.review_text, reviewed_at=self.review_date)

    @property
    def appointment_datetime(self) -> datetime:
        return schedule.combine(self.appointment_date, self.start_time)

    @property
    def end_datetime(self) -> datetime:
        return schedule.combine(self.appointment_date, self.end_time)

    def to_dict(self, now: datetime | None = None, strict: bool = False) -> dict[str, object]:
        now = now or datetime.now()
        starts = self.appointment_datetime
        return {
            "id": self.booking_id,
            "customer": self.customer.to_dict_basic() if self.customer else self.customer_id,
            "salon": {"id": self.salon.salon_id, "name": self.salon.name}
            if self.salon
            else self.salon_id,
            "service": {"id": self.service.service_id, "name": self.service.name}
            if self.service
            else self.service_id,
            "staff": self.staff_id,
            "appointmentDate": _iso(self.appointment_date),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration_minutes,
            "status": self.status,
            "totalAmount": self.total_amount,
            "currency": self.currency,
            "paymentStatus": self.payment_status,
            "paymentMethod": self.payment_method,
            "customerNotes": self.customer_notes,
            "salonNotes": self.salon_notes,
            "cancellationReason": self.cancellation_reason,
            "cancellationDate": _iso(self.cancellation_date),
            "cancelledBy": self.cancelled_by,
            "review": self.review.to_dict() if self.review else None,
            "appointmentDateTime": starts.isoformat(),
            "endDateTime": self.end_datetime.isoformat(),
            "formattedAppointmentTime": schedule.format_appointment(
                self.appointment_date, self.start_time
            ),
            "timeUntilAppointment": schedule.time_until(starts, now),
            "canBeCancelled": schedule.can_be_cancelled(self.status, starts, now, strict),
            "canBeRescheduled": schedule.can_be_rescheduled(self.status, starts, now, strict),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
