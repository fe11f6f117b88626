"""Salon and service catalog routes."""
from __future__ import annotations

from flask import Blueprint, jsonify, request

from . import catalog
from .auth import current_actor, login_required, roles_required
from .enums import Role
from .routes import json_payload

bp_catalog = Blueprint("catalog", __name__)


@bp_catalog.post("/salons")
@roles_required(Role.SALON_OWNER)
def create_salon() -> tuple[dict[str, object], int]:
    """Register the caller's salon. An owner may register only one.
    ---
    tags:
      - Salons
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            category:
              type: string
              enum: [hair, nail, spa, massage, beauty, barber, wellness, other]
            address:
              type: object
            contact:
              type: object
            workingHours:
              type: array
          required:
            - name
            - category
            - address
            - contact
    responses:
      201:
        description: Salon created
      400:
        description: Invalid payload, or the owner already has a salon
      403:
        description: Caller is not a salon owner
    """
    salon = catalog.create_salon(current_actor(), json_payload())
    return jsonify({"success": True, "salon": salon.to_dict()}), 201


@bp_catalog.get("/salons")
def list_salons() -> tuple[dict[str, object], int]:
    """List active salons.
    ---
    tags:
      - Salons
    parameters:
      - name: city
        in: query
        type: string
      - name: state
        in: query
        type: string
      - name: category
        in: query
        type: string
      - name: isFeatured
        in: query
        type: boolean
    responses:
      200:
        description: Matching salons
    """
    salons = catalog.list_salons(request.args)
    return jsonify({"success": True, "count": len(salons), "salons": [s.to_dict() for s in salons]}), 200


@bp_catalog.get("/salons/owner")
@roles_required(Role.SALON_OWNER)
def get_owner_salon() -> tuple[dict[str, object], int]:
    salon = catalog.get_owner_salon(current_actor())
    return jsonify({"success": True, "salon": salon.to_dict()}), 200


@bp_catalog.get("/salons/<int:salon_id>")
def get_salon(salon_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"success": True, "salon": catalog.get_salon(salon_id).to_dict()}), 200


@bp_catalog.put("/salons/<int:salon_id>")
@login_required
def update_salon(salon_id: int) -> tuple[dict[str, object], int]:
    salon = catalog.update_salon(current_actor(), salon_id, json_payload())
    return jsonify({"success": True, "salon": salon.to_dict()}), 200


@bp_catalog.delete("/salons/<int:salon_id>")
@login_required
def delete_salon(salon_id: int) -> tuple[dict[str, object], int]:
    catalog.delete_salon(current_actor(), salon_id)
    return jsonify({"success": True, "message": "Salon deleted (soft delete)."}), 200


@bp_catalog.post("/services")
@roles_required(Role.SALON_OWNER)
def create_service() -> tuple[dict[str, object], int]:
    """Add a service to the caller's salon.
    ---
    tags:
      - Services
    responses:
      201:
        description: Service created
      400:
        description: Invalid payload
      404:
        description: The caller has no salon
    """
    service = catalog.create_service(current_actor(), json_payload())
    return jsonify({"success": True, "service": service.to_dict()}), 201


@bp_catalog.get("/services/salon")
@roles_required(Role.SALON_OWNER)
def list_owner_services() -> tuple[dict[str, object], int]:
    services = catalog.list_owner_services(current_actor())
    return jsonify({"success": True, "services": [s.to_dict() for s in services]}), 200


@bp_catalog.get("/services/salon/<int:salon_id>")
def list_salon_services(salon_id: int) -> tuple[dict[str, object], int]:
    services = catalog.list_salon_services(salon_id)
    return jsonify({"success": True, "services": [s.to_dict() for s in services]}), 200


@bp_catalog.get("/services/<int:service_id>")
def get_service(service_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"success": True, "service": catalog.get_service(service_id).to_dict()}), 200


@bp_catalog.put("/services/<int:service_id>")
@login_required
def update_service(service_id: int) -> tuple[dict[str, object], int]:
    service = catalog.update_service(current_actor(), service_id, json_payload())
    return jsonify({"success": True, "service": service.to_dict()}), 200


@bp_catalog.delete("/services/<int:service_id>")
@login_required
def delete_service(service_id: int) -> tuple[dict[str, object], int]:
    catalog.delete_service(current_actor(), service_id)
    return jsonify({"success": True, "message": "Service deleted (soft delete)."}), 200
