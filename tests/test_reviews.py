"""Tests for booking reviews and the rating aggregates they maintain."""
from __future__ import annotations

from salonease.models import Salon

from conftest import auth_headers, tomorrow


def _complete(client, owner_token, booking_id) -> None:
    for status in ("confirmed", "in_progress", "completed"):
        response = client.patch(
            f"/bookings/{booking_id}/status",
            json={"status": status},
            headers=auth_headers(owner_token),
        )
        assert response.status_code == 200, response.get_json()


def _book(client, customer_token, salon, service) -> int:
    response = client.post(
        "/bookings",
        json={
            "salon": salon["id"],
            "service": service["id"],
            "appointmentDate": tomorrow(),
            "startTime": "14:00",
            "endTime": "14:30",
        },
        headers=auth_headers(customer_token),
    )
    assert response.status_code == 201
    return response.get_json()["booking"]["id"]


def _review(client, token, booking_id, rating, text="Great"):
    return client.post(
        "/reviews",
        json={"bookingId": booking_id, "rating": rating, "review": text},
        headers=auth_headers(token),
    )


def _ratings(client, salon, service):
    salon_rating = client.get(f"/salons/{salon['id']}").get_json()["salon"]["rating"]
    service_rating = client.get(f"/services/{service['id']}").get_json()["service"]["reviews"]
    return salon_rating, service_rating


def test_review_completed_booking(client, owner_token, customer_token, salon, service, booking) -> None:
    _complete(client, owner_token, booking["id"])

    response = _review(client, customer_token, booking["id"], 5)

    assert response.status_code == 201
    review = response.get_json()["review"]
    assert review["rating"] == 5
    assert review["review"] == "Great"
    assert review["reviewDate"] is not None
    assert _ratings(client, salon, service) == ({"average": 5.0, "count": 1}, {"average": 5.0, "count": 1})


def test_second_review_rejected(client, owner_token, customer_token, booking) -> None:
    _complete(client, owner_token, booking["id"])
    _review(client, customer_token, booking["id"], 5)

    response = _review(client, customer_token, booking["id"], 4)

    assert response.status_code == 400
    assert "already exists" in response.get_json()["message"]


def test_cannot_review_unfinished_booking(client, customer_token, booking) -> None:
    response = _review(client, customer_token, booking["id"], 5)

    assert response.status_code == 400
    assert response.get_json()["message"] == "You can only review completed bookings."


def test_rating_out_of_range(client, owner_token, customer_token, booking) -> None:
    _complete(client, owner_token, booking["id"])

    response = _review(client, customer_token, booking["id"], 6)

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_rating"


def test_only_booking_customer_may_review(client, register, owner_token, booking) -> None:
    _complete(client, owner_token, booking["id"])
    stranger = register("dave@x.com", name="Dave")

    assert _review(client, stranger, booking["id"], 5).status_code == 403
    assert _review(client, owner_token, booking["id"], 5).status_code == 403


def test_review_requires_booking_id(client, customer_token) -> None:
    response = client.post("/reviews", json={"rating": 5}, headers=auth_headers(customer_token))

    assert response.status_code == 400


def test_aggregates_are_weighted_average(client, owner_token, customer_token, salon, service, booking) -> None:
    second = _book(client, customer_token, salon, service)
    _complete(client, owner_token, booking["id"])
    _complete(client, owner_token, second)

    _review(client, customer_token, booking["id"], 5)
    _review(client, customer_token, second, 3)

    assert _ratings(client, salon, service) == ({"average": 4.0, "count": 2}, {"average": 4.0, "count": 2})

    updated = client.put(
        f"/reviews/{booking['id']}", json={"rating": 1}, headers=auth_headers(customer_token)
    )
    assert updated.status_code == 200
    assert _ratings(client, salon, service)[0] == {"average": 2.0, "count": 2}

    deleted = client.delete(f"/reviews/{booking['id']}", headers=auth_headers(customer_token))
    assert deleted.status_code == 200
    assert _ratings(client, salon, service)[0] == {"average": 3.0, "count": 1}


def test_update_review_text_only(client, owner_token, customer_token, booking) -> None:
    _complete(client, owner_token, booking["id"])
    _review(client, customer_token, booking["id"], 4)

    response = client.put(
        f"/reviews/{booking['id']}", json={"review": "Even better"}, headers=auth_headers(customer_token)
    )

    assert response.status_code == 200
    review = response.get_json()["review"]
    assert review["rating"] == 4
    assert review["review"] == "Even better"


def test_update_missing_review_400(client, customer_token, booking) -> None:
    response = client.put(
        f"/reviews/{booking['id']}", json={"rating": 3}, headers=auth_headers(customer_token)
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "review_not_found"


def test_admin_deletes_review(client, owner_token, customer_token, admin_token, salon, booking) -> None:
    _complete(client, owner_token, booking["id"])
    _review(client, customer_token, booking["id"], 2)

    response = client.delete(f"/reviews/{booking['id']}", headers=auth_headers(admin_token))

    assert response.status_code == 200
    booking_after = client.get(f"/bookings/{booking['id']}", headers=auth_headers(customer_token))
    assert booking_after.get_json()["booking"]["review"] is None


def test_list_reviews(client, owner_token, customer_token, salon, service, booking) -> None:
    _complete(client, owner_token, booking["id"])
    _review(client, customer_token, booking["id"], 5, text="Lovely")

    by_salon = client.get(f"/reviews/salon/{salon['id']}").get_json()["reviews"]
    by_service = client.get(f"/reviews/service/{service['id']}").get_json()["reviews"]

    assert [r["review"] for r in by_salon] == ["Lovely"]
    assert by_salon[0]["customer"]["name"] == "Bob"
    assert by_service == by_salon


def test_rating_aggregate_arithmetic() -> None:
    salon = Salon(rating_average=0.0, rating_count=0)

    salon.add_rating(4)
    salon.add_rating(2)
    assert (salon.rating_average, salon.rating_count) == (3.0, 2)

    salon.replace_rating(2, 5)
    assert salon.rating_average == 4.5

    salon.remove_rating(5)
    assert (salon.rating_average, salon.rating_count) == (4.0, 1)

    salon.remove_rating(4)
    assert (salon.rating_average, salon.rating_count) == (0.0, 0)


def test_confirmed_booking_completed_then_reviewed(client, owner_token, customer_token, booking) -> None:
    for status in ("confirmed", "completed"):
        response = client.patch(
            f"/bookings/{booking['id']}/status",
            json={"status": status},
            headers=auth_headers(owner_token),
        )
        assert response.status_code == 200, response.get_json()

    first = _review(client, customer_token, booking["id"], 5, text="great")
    second = _review(client, customer_token, booking["id"], 5, text="great")

    assert first.status_code == 201
    assert second.status_code == 400
    assert "already exists" in second.get_json()["message"]


def test_review_text_required(client, owner_token, customer_token, booking) -> None:
    _complete(client, owner_token, booking["id"])

    response = client.post(
        "/reviews",
        json={"bookingId": booking["id"], "rating": 4},
        headers=auth_headers(customer_token),
    )

    assert response.status_code == 400
    fetched = client.get(f"/bookings/{booking['id']}", headers=auth_headers(customer_token))
    assert fetched.get_json()["booking"]["review"] is None


def test_update_cannot_clear_review_text(client, owner_token, customer_token, booking) -> None:
    _complete(client, owner_token, booking["id"])
    _review(client, customer_token, booking["id"], 4, text="Nice")

    response = client.put(
        f"/reviews/{booking['id']}", json={"review": ""}, headers=auth_headers(customer_token)
    )

    assert response.status_code == 400
    fetched = client.get(f"/bookings/{booking['id']}", headers=auth_headers(customer_token))
    assert fetched.get_json()["booking"]["review"]["review"] == "Nice"
