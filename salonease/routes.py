"""HTTP routes for health checks, authentication and user accounts."""
from __future__ import annotations

from flask import Blueprint, Flask, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import identity
from .auth import current_user, login_required, roles_required
from .enums import Role
from .errors import ValidationError
from .extensions import db

bp = Blueprint("api", __name__)


def json_payload() -> dict[str, object]:
    payload = request.get_json(silent=True)
    if payload is None:
        if request.get_data(cache=True):
            raise ValidationError("Request body must be valid JSON", error="invalid_json")
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"success": True, "status": "ok", "message": "SalonEase API is running"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"success": False, "database": "unavailable"}), 500

    return jsonify({"success": True, "database": "ok"}), 200


@bp.post("/auth/register")
def register_user() -> tuple[dict[str, object], int]:
    """Register a new customer or salon owner.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            email:
              type: string
            password:
              type: string
            role:
              type: string
              enum: [customer, salon_owner]
            phone:
              type: string
          required:
            - name
            - email
            - password
    responses:
      201:
        description: User registered, returns access token
      400:
        description: Invalid payload or email already exists
    """
    user, token = identity.register_user(json_payload())
    return jsonify({"success": True, "token": token, "user": user.to_dict_basic()}), 201


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate a user by email/password and return an access token.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Login successful, returns access token
      400:
        description: Missing email or password
      401:
        description: Invalid credentials
    """
    payload = json_payload()
    user, token = identity.authenticate(payload.get("email"), payload.get("password"))
    return jsonify({"success": True, "token": token, "user": user.to_dict_basic()}), 200


@bp.post("/auth/logout")
@login_required
def logout() -> tuple[dict[str, object], int]:
    # Tokens are stateless; the client discards its copy.
    return jsonify({"success": True, "message": "Logged out successfully."}), 200


@bp.get("/auth/profile")
@login_required
def get_profile() -> tuple[dict[str, object], int]:
    return jsonify({"success": True, "user": current_user().to_dict()}), 200


@bp.get("/users/me")
@login_required
def get_me() -> tuple[dict[str, object], int]:
    return jsonify({"success": True, "user": current_user().to_dict()}), 200


@bp.put("/users/me")
@login_required
def update_me() -> tuple[dict[str, object], int]:
    """Update the caller's profile. ``role`` and ``email`` are ignored.
    ---
    tags:
      - Users
    responses:
      200:
        description: Updated profile
      400:
        description: Invalid field value
    """
    user = identity.update_profile(current_user(), json_payload())
    return jsonify({"success": True, "user": user.to_dict()}), 200


@bp.put("/users/change-password")
@login_required
def change_password() -> tuple[dict[str, object], int]:
    payload = json_payload()
    identity.change_password(
        current_user(), payload.get("currentPassword"), payload.get("newPassword")
    )
    return jsonify({"success": True, "message": "Password updated successfully."}), 200


@bp.delete("/users/me")
@login_required
def deactivate_me() -> tuple[dict[str, object], int]:
    identity.deactivate(current_user())
    return jsonify({"success": True, "message": "Account deactivated."}), 200


@bp.get("/users")
@roles_required(Role.ADMIN)
def list_users() -> tuple[dict[str, object], int]:
    users = identity.list_users()
    return jsonify({"success": True, "count": len(users), "users": [u.to_dict() for u in users]}), 200


@bp.get("/users/<int:user_id>")
@roles_required(Role.ADMIN)
def get_user(user_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"success": True, "user": identity.get_user(user_id).to_dict()}), 200


def register_routes(app: Flask) -> None:
    from .routes_bookings import bp_bookings
    from .routes_catalog import bp_catalog
    from .routes_uploads import bp_uploads

    app.register_blueprint(bp)
    app.register_blueprint(bp_catalog)
    app.register_blueprint(bp_bookings)
    app.register_blueprint(bp_uploads)
