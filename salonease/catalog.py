"""Salon and service catalog operations.

Reads are public and only ever see active records; writes are gated by
role and ownership through ``policy``. Deletion is a soft delete.
"""
from __future__ import annotations

from typing import Mapping

from flask import current_app

from . import policy, schedule
from . import validation as v
from .enums import CATEGORIES, SUBCATEGORIES, WEEKDAYS, Role
from .errors import ConflictError, NotFoundError, ValidationError
from .extensions import db
from .models import Salon, Service
from .policy import Actor


def _working_hours(value: object) -> list[dict[str, object]]:
    if not isinstance(value, list):
        raise ValidationError("workingHours must be a list")
    hours = []
    for entry in value:
        if not isinstance(entry, dict):
            raise ValidationError("workingHours entries must be objects")
        day = v.choice(str(entry.get("day", "")).lower(), WEEKDAYS, "day")
        is_open = v.boolean(entry.get("isOpen", True), "isOpen")
        item: dict[str, object] = {"day": day, "isOpen": is_open}
        if is_open:
            if not entry.get("openTime") or not entry.get("closeTime"):
                raise ValidationError(f"openTime and closeTime are required for {day}")
            item["openTime"] = schedule.normalize_time(entry["openTime"])
            item["closeTime"] = schedule.normalize_time(entry["closeTime"])
            if item["openTime"] >= item["closeTime"]:
                raise ValidationError(f"openTime must be before closeTime for {day}")
        hours.append(item)
    return hours


def _apply_salon_fields(salon: Salon, payload: Mapping[str, object], actor: Actor, creating: bool) -> None:
    if creating or "name" in payload:
        salon.name = v.text(payload, "name", label="a salon name", required=True, max_length=100)
    if "description" in payload:
        salon.description = v.text(payload, "description", max_length=1000)
    if creating or "category" in payload:
        salon.category = v.choice(payload.get("category"), CATEGORIES, "category")
    if "specialties" in payload:
        specialties = v.string_list(payload["specialties"], "specialties")
        for item in specialties:
            v.choice(item, SUBCATEGORIES, "specialty")
        salon.specialties = specialties

    if creating or "address" in payload:
        address = payload.get("address")
        if not isinstance(address, dict):
            raise ValidationError("Please provide an address")
        salon.street = v.text(address, "street", label="street address", required=True, max_length=150)
        salon.city = v.text(address, "city", label="city", required=True, max_length=100)
        salon.state = v.text(address, "state", label="state", required=True, max_length=100)
        salon.zip_code = v.text(address, "zipCode", label="zip code", required=True, max_length=20)
        salon.country = v.text(address, "country", max_length=100) or "United States"

    if "location" in payload:
        location = payload.get("location") or {}
        coordinates = location.get("coordinates") if isinstance(location, dict) else None
        if not isinstance(coordinates, list) or len(coordinates) != 2:
            raise ValidationError("location.coordinates must be [longitude, latitude]")
        salon.longitude = v.number(coordinates[0], "longitude")
        salon.latitude = v.number(coordinates[1], "latitude")

    if creating or "contact" in payload:
        contact = payload.get("contact")
        if not isinstance(contact, dict):
            raise ValidationError("Please provide contact details")
        salon.phone = v.text(contact, "phone", label="phone number", required=True, max_length=30)
        salon.email = v.text(contact, "email", label="email", required=True, max_length=255)
        salon.website = v.text(contact, "website", max_length=255)

    if "workingHours" in payload:
        salon.working_hours = _working_hours(payload["workingHours"])
    if "logo" in payload:
        salon.logo_url = v.text(payload, "logo", max_length=255)
    if "images" in payload:
        salon.images = v.string_list(payload["images"], "images")
    if "isOpen" in payload:
        salon.is_open = v.boolean(payload["isOpen"], "isOpen")

    # Curation flags belong to administrators.
    if actor.is_admin:
        if "isVerified" in payload:
            salon.is_verified = v.boolean(payload["isVerified"], "isVerified")
        if "isFeatured" in payload:
            salon.is_featured = v.boolean(payload["isFeatured"], "isFeatured")


def create_salon(actor: Actor, payload: Mapping[str, object]) -> Salon:
    policy.require(
        actor,
        allowed_roles=[Role.SALON_OWNER],
        message="Only salon owners can register a salon.",
    )
    if Salon.query.filter_by(owner_id=actor.id).first():
        raise ConflictError("You already have a registered salon.")

    salon = Salon(owner_id=actor.id)
    _apply_salon_fields(salon, payload, actor, creating=True)
    db.session.add(salon)
    db.session.commit()
    current_app.logger.info("Salon %s registered by owner %s", salon.salon_id, actor.id)
    return salon


def get_salon(salon_id: int) -> Salon:
    salon = db.session.get(Salon, salon_id)
    if salon is None or not salon.is_active:
        raise NotFoundError("Salon not found")
    return salon


def get_owner_salon(actor: Actor) -> Salon:
    salon = Salon.query.filter_by(owner_id=actor.id, is_active=True).first()
    if salon is None:
        raise NotFoundError("Salon not found for this owner")
    return salon


def list_salons(filters: Mapping[str, str]) -> list[Salon]:
    query = Salon.query.filter(Salon.is_active.is_(True))

    city = (filters.get("city") or "").strip()
    state = (filters.get("state") or "").strip()
    category = (filters.get("category") or "").strip()
    featured = (filters.get("isFeatured") or "").strip().lower()

    if city:
        query = query.filter(Salon.city.ilike(city))
    if state:
        query = query.filter(Salon.state.ilike(state))
    if category:
        query = query.filter(Salon.category == category)
    if featured:
        query = query.filter(Salon.is_featured.is_(featured == "true"))

    return query.order_by(Salon.created_at.desc()).all()


def update_salon(actor: Actor, salon_id: int, payload: Mapping[str, object]) -> Salon:
    salon = get_salon(salon_id)
    policy.require(actor, owner_id=salon.owner_id)
    # The owner column is never reassigned through an update.
    _apply_salon_fields(salon, payload, actor, creating=False)
    db.session.commit()
    return salon


def delete_salon(actor: Actor, salon_id: int) -> None:
    salon = get_salon(salon_id)
    policy.require(actor, owner_id=salon.owner_id)
    salon.is_active = False
    db.session.commit()
    current_app.logger.info("Salon %s deactivated by user %s", salon_id, actor.id)


def add_salon_image(actor: Actor, salon_id: int, url: str) -> Salon:
    salon = get_salon(salon_id)
    policy.require(actor, owner_id=salon.owner_id)
    # Reassign so the JSON column is flagged as modified.
    salon.images = [*(salon.images or []), url]
    db.session.commit()
    return salon


def _apply_service_fields(service: Service, payload: Mapping[str, object], creating: bool) -> None:
    if creating or "name" in payload:
        service.name = v.text(payload, "name", label="a service name", required=True, max_length=100)
    if "description" in payload:
        service.description = v.text(payload, "description", max_length=500)
    if creating or "category" in payload:
        service.category = v.choice(payload.get("category"), CATEGORIES, "category")
    if creating or "subcategory" in payload:
        service.subcategory = v.choice(payload.get("subcategory"), SUBCATEGORIES, "subcategory")
    if creating or "price" in payload:
        if payload.get("price") is None:
            raise ValidationError("Please provide a price")
        service.price = v.number(payload["price"], "price", minimum=0)
    if creating or "duration" in payload:
        if payload.get("duration") is None:
            raise ValidationError("Please provide service duration")
        service.duration_minutes = v.integer(payload["duration"], "duration", minimum=5)
    if "currency" in payload:
        service.currency = (v.text(payload, "currency", max_length=3) or "USD").upper()
    if "isPopular" in payload:
        service.is_popular = v.boolean(payload["isPopular"], "isPopular")
    if "isFeatured" in payload:
        service.is_featured = v.boolean(payload["isFeatured"], "isFeatured")
    if "image" in payload:
        service.image_url = v.text(payload, "image", max_length=255)


def create_service(actor: Actor, payload: Mapping[str, object]) -> Service:
    policy.require(
        actor,
        allowed_roles=[Role.SALON_OWNER],
        message="Only salon owners can add services.",
    )
    salon = Salon.query.filter_by(owner_id=actor.id, is_active=True).first()
    if salon is None:
        raise NotFoundError("Salon not found for this owner.")

    service = Service(salon_id=salon.salon_id, salon=salon)
    _apply_service_fields(service, payload, creating=True)
    db.session.add(service)
    db.session.commit()
    return service


def get_service(service_id: int) -> Service:
    service = db.session.get(Service, service_id)
    if service is None or not service.is_active:
        raise NotFoundError("Service not found")
    return service


def list_salon_services(salon_id: int) -> list[Service]:
    salon = get_salon(salon_id)
    return salon.services.filter(Service.is_active.is_(True)).order_by(Service.name).all()


def list_owner_services(actor: Actor) -> list[Service]:
    salon = get_owner_salon(actor)
    return salon.services.order_by(Service.name).all()


def update_service(actor: Actor, service_id: int, payload: Mapping[str, object]) -> Service:
    service = get_service(service_id)
    policy.require_owner(actor, service.salon.owner_id)
    _apply_service_fields(service, payload, creating=False)
    db.session.commit()
    return service


def delete_service(actor: Actor, service_id: int) -> None:
    service = get_service(service_id)
    policy.require_owner(actor, service.salon.owner_id)
    service.is_active = False
    db.session.commit()
