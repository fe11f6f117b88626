"""Create an administrator account, or promote and reset an existing one."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the project root is on sys.path so ``salonease`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonease import create_app
from salonease.auth import hash_password
from salonease.enums import Role
from salonease.extensions import db
from salonease.models import AuthAccount, User


def create_admin(email: str, password: str, name: str = "Admin User") -> None:
    app = create_app()
    email = email.strip().lower()

    with app.app_context():
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(name=name, email=email, role=Role.ADMIN.value)
            db.session.add(user)
            db.session.flush()
            print(f"Created new admin user: {email}")
        elif user.role != Role.ADMIN.value:
            print(f"Updating user role from '{user.role}' to 'admin'")
            user.role = Role.ADMIN.value
        user.is_active = True

        account = db.session.get(AuthAccount, user.user_id)
        if account is None:
            account = AuthAccount(user_id=user.user_id, password_hash="")
            db.session.add(account)

        account.password_hash = hash_password(password)
        db.session.commit()

        print(f"Admin account '{email}' is ready.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or promote an administrator account.")
    parser.add_argument("email", help="Admin email address")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument("--name", default="Admin User", help="Display name for a new account")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    create_admin(args.email, args.password, args.name)


if __name__ == "__main__":
    main()
