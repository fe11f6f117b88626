"""User registration, login and profile management."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Mapping

from flask import current_app

from .auth import build_token, hash_password, verify_password
from .enums import Role
from .errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .extensions import db
from .models import AuthAccount, User

EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 50

# Admin accounts are created out of band (scripts/create_admin.py).
SELF_REGISTER_ROLES = (Role.CUSTOMER.value, Role.SALON_OWNER.value)


def _clean_name(value: object) -> str:
    name = value.strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError("Please provide a name")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name cannot be more than {MAX_NAME_LENGTH} characters")
    return name


def _clean_phone(value: object) -> str | None:
    if value in (None, ""):
        return None
    phone = str(value).strip()
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("Please provide a valid phone number")
    return phone


def _check_password(password: object) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def register_user(payload: Mapping[str, object]) -> tuple[User, str]:
    email = str(payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""
    if not payload.get("name") or not email or not password:
        raise ValidationError("Please provide all required fields.")

    name = _clean_name(payload.get("name"))
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please provide a valid email")
    _check_password(password)
    role = str(payload.get("role") or Role.CUSTOMER.value).strip().lower()
    if role not in SELF_REGISTER_ROLES:
        raise ValidationError(
            f"role must be one of: {', '.join(SELF_REGISTER_ROLES)}", error="invalid_role"
        )
    phone = _clean_phone(payload.get("phone"))

    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already exists.")

    user = User(name=name, email=email, role=role, phone=phone)
    db.session.add(user)
    db.session.flush()  # Get the new user_id before creating the AuthAccount
    db.session.add(AuthAccount(user_id=user.user_id, password_hash=hash_password(password)))
    db.session.commit()

    current_app.logger.info("Registered user %s with role %s", user.user_id, role)
    return user, build_token(user)


def authenticate(email: object, password: object) -> tuple[User, str]:
    email = str(email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Please provide email and password.")

    record = (
        db.session.query(User, AuthAccount)
        .join(AuthAccount, AuthAccount.user_id == User.user_id)
        .filter(User.email == email)
        .first()
    )
    if not record:
        raise AuthenticationError("Invalid credentials.")

    user, account = record
    if not verify_password(account.password_hash, str(password)):
        raise AuthenticationError("Invalid credentials.")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated.")

    account.last_login_at = datetime.now(timezone.utc)
    db.session.commit()
    return user, build_token(user)


def update_profile(user: User, payload: Mapping[str, object]) -> User:
    # role and email are fixed after registration; credentials and the
    # active flag have their own operations.
    if "name" in payload:
        user.name = _clean_name(payload.get("name"))
    if "phone" in payload:
        user.phone = _clean_phone(payload.get("phone"))
    if "avatar" in payload:
        user.avatar_url = payload.get("avatar") or None
    db.session.commit()
    return user


def change_password(user: User, current_password: object, new_password: object) -> None:
    if not current_password or not new_password:
        raise ValidationError("Please provide current and new password.")
    account = user.auth_account
    if account is None or not verify_password(account.password_hash, str(current_password)):
        raise AuthenticationError("Current password is incorrect.")
    account.password_hash = hash_password(_check_password(new_password))
    db.session.commit()


def deactivate(user: User) -> None:
    user.is_active = False
    db.session.commit()
    current_app.logger.info("Deactivated user %s", user.user_id)


def list_users() -> list[User]:
    return User.query.order_by(User.created_at.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
