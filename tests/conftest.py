"""pytest configuration: application, client and account fixtures."""
from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the app package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonease import create_app
from salonease.auth import hash_password
from salonease.extensions import db
from salonease.models import AuthAccount, User

PASSWORD = "Secret123!"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


def salon_payload(**overrides) -> dict[str, object]:
    payload = {
        "name": "Glam",
        "description": "Cuts and colour",
        "category": "hair",
        "address": {
            "street": "1 Main St",
            "city": "Newark",
            "state": "NJ",
            "zipCode": "07102",
        },
        "location": {"type": "Point", "coordinates": [-74.17, 40.73]},
        "contact": {"phone": "+15551234567", "email": "glam@example.com"},
        "workingHours": [
            {"day": "monday", "isOpen": True, "openTime": "09:00", "closeTime": "18:00"},
            {"day": "sunday", "isOpen": False},
        ],
    }
    payload.update(overrides)
    return payload


def service_payload(**overrides) -> dict[str, object]:
    payload = {
        "name": "Cut",
        "category": "hair",
        "subcategory": "haircut",
        "price": 30,
        "duration": 30,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register(client):
    def _register(email: str, role: str = "customer", name: str = "Test User") -> str:
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": PASSWORD, "role": role},
        )
        assert response.status_code == 201, response.get_json()
        return response.get_json()["token"]

    return _register


@pytest.fixture
def owner_token(register):
    return register("alice@x.com", role="salon_owner", name="Alice")


@pytest.fixture
def customer_token(register):
    return register("bob@x.com", role="customer", name="Bob")


@pytest.fixture
def admin_token(app, client):
    user = User(name="Admin", email="admin@x.com", role="admin")
    db.session.add(user)
    db.session.flush()
    db.session.add(AuthAccount(user_id=user.user_id, password_hash=hash_password(PASSWORD)))
    db.session.commit()

    response = client.post("/auth/login", json={"email": "admin@x.com", "password": PASSWORD})
    assert response.status_code == 200
    return response.get_json()["token"]


@pytest.fixture
def salon(client, owner_token):
    response = client.post("/salons", json=salon_payload(), headers=auth_headers(owner_token))
    assert response.status_code == 201, response.get_json()
    return response.get_json()["salon"]


@pytest.fixture
def service(client, owner_token, salon):
    response = client.post("/services", json=service_payload(), headers=auth_headers(owner_token))
    assert response.status_code == 201, response.get_json()
    return response.get_json()["service"]


@pytest.fixture
def booking(client, customer_token, salon, service):
    response = client.post(
        "/bookings",
        json={
            "salon": salon["id"],
            "service": service["id"],
            "appointmentDate": tomorrow(),
            "startTime": "10:00",
            "endTime": "10:30",
        },
        headers=auth_headers(customer_token),
    )
    assert response.status_code == 201, response.get_json()
    return response.get_json()["booking"]
