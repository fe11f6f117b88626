"""Image upload routes and static serving of uploaded files."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, send_from_directory

from . import catalog, policy
from .auth import current_actor, current_user, login_required, roles_required
from .enums import Role
from .errors import ValidationError
from .extensions import db
from .storage import LocalBlobStore

bp_uploads = Blueprint("uploads", __name__)


def _store() -> LocalBlobStore:
    return LocalBlobStore(current_app.config["UPLOAD_FOLDER"])


def _save(field: str, category: str, prefix: str) -> str:
    try:
        return _store().save(request.files.get(field), category, prefix)
    except ValidationError as exc:
        current_app.logger.warning("Rejected upload for field %s: %s", field, exc.message)
        raise


@bp_uploads.post("/uploads/avatar")
@login_required
def upload_avatar() -> tuple[dict[str, object], int]:
    """Upload the caller's avatar and attach it to their profile.
    ---
    tags:
      - Uploads
    consumes:
      - multipart/form-data
    parameters:
      - in: formData
        name: avatar
        type: file
        required: true
        description: The image file (PNG, JPG, JPEG, GIF, WEBP) to upload.
    responses:
      200:
        description: Uploaded, returns the file URL
      400:
        description: Missing file or not an image
      413:
        description: File too large
    """
    user = current_user()
    url = _save("avatar", "users", f"avatar_{user.user_id}")
    user.avatar_url = url
    db.session.commit()
    return jsonify({"success": True, "url": url}), 200


@bp_uploads.post("/uploads/salon/<int:salon_id>")
@roles_required(Role.SALON_OWNER, Role.ADMIN)
def upload_salon_image(salon_id: int) -> tuple[dict[str, object], int]:
    actor = current_actor()
    # Check ownership before touching the disk.
    policy.require(actor, owner_id=catalog.get_salon(salon_id).owner_id)
    url = _save("image", "salons", f"salon_{salon_id}")
    salon = catalog.add_salon_image(actor, salon_id, url)
    return jsonify({"success": True, "url": salon.images[-1]}), 200


@bp_uploads.post("/uploads/image")
@login_required
def upload_image() -> tuple[dict[str, object], int]:
    url = _save("image", "generic", "image")
    return jsonify({"success": True, "imageUrl": url}), 200


@bp_uploads.get("/uploads/<path:filename>")
def serve_upload(filename: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
