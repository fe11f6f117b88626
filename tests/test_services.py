"""Tests for the service catalog of a salon."""
from __future__ import annotations

from conftest import auth_headers, service_payload


def test_create_service(client, owner_token, salon) -> None:
    response = client.post("/services", json=service_payload(), headers=auth_headers(owner_token))

    assert response.status_code == 201
    service = response.get_json()["service"]
    assert service["salon"] == salon["id"]
    assert service["salonName"] == "Glam"
    assert service["price"] == 30
    assert service["currency"] == "USD"
    assert service["formattedDuration"] == "30m"
    assert service["reviews"] == {"average": 0.0, "count": 0}


def test_create_service_without_salon_404(client, owner_token) -> None:
    response = client.post("/services", json=service_payload(), headers=auth_headers(owner_token))

    assert response.status_code == 404


def test_customer_cannot_create_service(client, customer_token, salon) -> None:
    response = client.post("/services", json=service_payload(), headers=auth_headers(customer_token))

    assert response.status_code == 403


def test_create_service_rejects_short_duration(client, owner_token, salon) -> None:
    response = client.post(
        "/services", json=service_payload(duration=2), headers=auth_headers(owner_token)
    )

    assert response.status_code == 400


def test_create_service_rejects_negative_price(client, owner_token, salon) -> None:
    response = client.post(
        "/services", json=service_payload(price=-5), headers=auth_headers(owner_token)
    )

    assert response.status_code == 400


def test_list_services_for_salon(client, owner_token, salon, service) -> None:
    client.post(
        "/services",
        json=service_payload(name="Colour", subcategory="coloring", duration=90),
        headers=auth_headers(owner_token),
    )

    response = client.get(f"/services/salon/{salon['id']}")

    assert response.status_code == 200
    names = [s["name"] for s in response.get_json()["services"]]
    assert names == ["Colour", "Cut"]


def test_owner_lists_own_services(client, owner_token, service) -> None:
    response = client.get("/services/salon", headers=auth_headers(owner_token))

    assert response.status_code == 200
    assert [s["id"] for s in response.get_json()["services"]] == [service["id"]]


def test_get_service(client, service) -> None:
    response = client.get(f"/services/{service['id']}")

    assert response.status_code == 200
    assert response.get_json()["service"]["name"] == "Cut"


def test_update_service(client, owner_token, service) -> None:
    response = client.put(
        f"/services/{service['id']}",
        json={"price": 45.5, "duration": 75},
        headers=auth_headers(owner_token),
    )

    assert response.status_code == 200
    body = response.get_json()["service"]
    assert body["price"] == 45.5
    assert body["formattedDuration"] == "1h 15m"


def test_other_owner_cannot_update_service(client, register, service) -> None:
    intruder = register("eve@x.com", role="salon_owner", name="Eve")

    response = client.put(
        f"/services/{service['id']}", json={"price": 1}, headers=auth_headers(intruder)
    )

    assert response.status_code == 403


def test_delete_service_hides_it(client, owner_token, salon, service) -> None:
    response = client.delete(f"/services/{service['id']}", headers=auth_headers(owner_token))

    assert response.status_code == 200
    assert client.get(f"/services/{service['id']}").status_code == 404
    assert client.get(f"/services/salon/{salon['id']}").get_json()["services"] == []


def test_create_service_rejects_non_finite_price(client, owner_token, salon) -> None:
    for price in ("inf", "NaN", "-Infinity"):
        response = client.post(
            "/services", json=service_payload(price=price), headers=auth_headers(owner_token)
        )

        assert response.status_code == 400, price
        assert response.get_json()["error"] == "invalid_payload"

    assert client.get("/services/salon", headers=auth_headers(owner_token)).get_json()["services"] == []
