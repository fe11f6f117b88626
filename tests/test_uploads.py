"""Tests for image uploads and serving them back."""
from __future__ import annotations

import io

from salonease.storage import LocalBlobStore

from conftest import auth_headers

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _image(name="photo.png", mimetype="image/png", payload=PNG_BYTES):
    return (io.BytesIO(payload), name, mimetype)


def test_upload_avatar_sets_profile(client, customer_token) -> None:
    response = client.post(
        "/uploads/avatar",
        data={"avatar": _image()},
        content_type="multipart/form-data",
        headers=auth_headers(customer_token),
    )

    assert response.status_code == 200
    url = response.get_json()["url"]
    assert url.startswith("/uploads/users/avatar_")
    assert url.endswith(".png")

    profile = client.get("/users/me", headers=auth_headers(customer_token)).get_json()["user"]
    assert profile["avatar"] == url

    served = client.get(url)
    assert served.status_code == 200
    assert served.data == PNG_BYTES


def test_upload_rejects_non_image(client, customer_token) -> None:
    response = client.post(
        "/uploads/avatar",
        data={"avatar": _image(name="notes.txt", mimetype="text/plain", payload=b"hello")},
        content_type="multipart/form-data",
        headers=auth_headers(customer_token),
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_file_type"


def test_upload_without_file(client, customer_token) -> None:
    response = client.post(
        "/uploads/avatar",
        data={},
        content_type="multipart/form-data",
        headers=auth_headers(customer_token),
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "no_file_provided"


def test_upload_too_large(app, client, customer_token) -> None:
    app.config["MAX_CONTENT_LENGTH"] = 64

    response = client.post(
        "/uploads/avatar",
        data={"avatar": _image(payload=b"\x00" * 1024)},
        content_type="multipart/form-data",
        headers=auth_headers(customer_token),
    )

    assert response.status_code == 413


def test_upload_requires_login(client) -> None:
    response = client.post(
        "/uploads/image", data={"image": _image()}, content_type="multipart/form-data"
    )

    assert response.status_code == 401


def test_upload_generic_image(client, customer_token) -> None:
    response = client.post(
        "/uploads/image",
        data={"image": _image(name="banner.JPG", mimetype="image/jpeg")},
        content_type="multipart/form-data",
        headers=auth_headers(customer_token),
    )

    assert response.status_code == 200
    assert response.get_json()["imageUrl"].startswith("/uploads/generic/image_")


def test_owner_uploads_salon_image(client, owner_token, salon) -> None:
    response = client.post(
        f"/uploads/salon/{salon['id']}",
        data={"image": _image()},
        content_type="multipart/form-data",
        headers=auth_headers(owner_token),
    )

    assert response.status_code == 200
    url = response.get_json()["url"]
    assert client.get(f"/salons/{salon['id']}").get_json()["salon"]["images"] == [url]


def test_other_owner_cannot_upload_salon_image(app, client, register, salon) -> None:
    intruder = register("eve@x.com", role="salon_owner", name="Eve")

    response = client.post(
        f"/uploads/salon/{salon['id']}",
        data={"image": _image()},
        content_type="multipart/form-data",
        headers=auth_headers(intruder),
    )

    assert response.status_code == 403
    salon_dir = LocalBlobStore(app.config["UPLOAD_FOLDER"]).root / "salons"
    assert not salon_dir.exists()


def test_serve_missing_upload_404(client) -> None:
    assert client.get("/uploads/users/nope.png").status_code == 404
