"""Credential hashing, token issuance and request authentication."""
from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthenticationError, AuthorizationError
from .extensions import db
from .models import User
from .policy import Actor

TOKEN_SALT = "auth-token"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def build_token(user: User) -> str:
    return _serializer().dumps({"user_id": user.user_id, "role": user.role})


def decode_token(token: str) -> dict[str, object]:
    """Return the token payload, raising ``AuthenticationError`` if it is bad or stale."""
    max_age = current_app.config["SETTINGS"].token_max_age
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired as exc:
        raise AuthenticationError("Token has expired") from exc
    except BadSignature as exc:
        raise AuthenticationError("Not authorized to access this route") from exc
    if not isinstance(payload, dict) or "user_id" not in payload:
        raise AuthenticationError("Not authorized to access this route")
    return payload


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:].strip() or None


def authenticate_request() -> User:
    token = _bearer_token()
    if token is None:
        raise AuthenticationError("Not authorized to access this route")

    payload = decode_token(token)
    user = db.session.get(User, payload["user_id"])
    if user is None or not user.is_active:
        raise AuthenticationError("User no longer exists or is deactivated")
    return user


def current_user() -> User:
    return g.current_user


def current_actor() -> Actor:
    return g.actor


def login_required(view: Callable) -> Callable:
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = authenticate_request()
        g.current_user = user
        # Role comes from the stored record, not the token, so demotions apply at once.
        g.actor = Actor(id=user.user_id, role=user.role)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: str) -> Callable[[Callable], Callable]:
    allowed = {getattr(role, "value", role) for role in roles}

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        @login_required
        def wrapper(*args, **kwargs):
            actor = current_actor()
            if actor.role not in allowed:
                raise AuthorizationError(
                    f"User role {actor.role} is not authorized to access this route"
                )
            return view(*args, **kwargs)

        return wrapper

    return decorator
