import time

import jwt

from conftest import image, login
from models.account_store import AccountStore
from utils.security import ACCESS, issue_token

CURRENT_USER = "/api/v1/users/current-user"


def test_current_user_via_cookie(client, user):
    login(client)
    response = client.get(CURRENT_USER)
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["id"] == user.id
    assert data["email"] == "u1@example.com"
    assert "refreshToken" not in data


def test_current_user_via_bearer_header(app, client, user):
    access = login(client).get_json()["data"]["accessToken"]
    response = app.test_client().get(CURRENT_USER, headers={"Authorization": f"Bearer {access}"})
    assert response.status_code == 200


def test_current_user_requires_token(client):
    assert client.get(CURRENT_USER).status_code == 401


def test_refresh_token_is_not_an_access_token(app, client, user):
    refresh = login(client).get_json()["data"]["refreshToken"]
    response = app.test_client().get(CURRENT_USER, headers={"Authorization": f"Bearer {refresh}"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid access token"


def test_expired_access_token(app, token_config, user):
    expired = jwt.encode(
        {"sub": user.id, "type": ACCESS, "exp": int(time.time()) - 5},
        token_config.access_secret,
        algorithm=token_config.algorithm,
    )
    response = app.test_client().get(CURRENT_USER, headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Access token expired"


def test_access_token_stays_valid_after_logout(app, client, user):
    """Access tokens are stateless: they live until their short expiry."""
    access = login(client).get_json()["data"]["accessToken"]
    client.post("/api/v1/users/logout")
    response = app.test_client().get(CURRENT_USER, headers={"Authorization": f"Bearer {access}"})
    assert response.status_code == 200


def test_token_for_deleted_account(app, token_config):
    token = issue_token(token_config, "missing-user", ACCESS)
    response = app.test_client().get(CURRENT_USER, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


class TestUpdateAccount:
    def test_updates_details(self, client, store, user):
        login(client)
        response = client.patch("/api/v1/users/update-account",
                                json={"fullName": "Renamed", "email": "renamed@example.com"})
        assert response.status_code == 200
        assert response.get_json()["data"]["fullName"] == "Renamed"
        assert store.find_by_id(user.id).email == "renamed@example.com"

    def test_email_in_use(self, client, store, user):
        store.create_account(username="u2", email="u2@example.com", full_name="Two",
                             password_hash="x", avatar="/media/u2.png")
        login(client)
        response = client.patch("/api/v1/users/update-account",
                                json={"fullName": "Renamed", "email": "u2@example.com"})
        assert response.status_code == 409

    def test_email_claimed_after_check(self, client, store, user, monkeypatch):
        store.create_account(username="u2", email="u2@example.com", full_name="Two",
                             password_hash="x", avatar="/media/u2.png")
        # the other account takes the email between the check and the write
        monkeypatch.setattr(AccountStore, "email_taken", lambda self, email, exclude_id=None: False)
        login(client)
        response = client.patch("/api/v1/users/update-account",
                                json={"fullName": "Renamed", "email": "u2@example.com"})
        assert response.status_code == 409
        assert response.get_json()["message"] == "Email already in use"
        assert store.find_by_id(user.id).email == "u1@example.com"

    def test_fields_required(self, client, user):
        login(client)
        response = client.patch("/api/v1/users/update-account", json={"fullName": "Renamed"})
        assert response.status_code == 400
        assert "email" in response.get_json()["errors"]


class TestImages:
    def test_replace_avatar(self, client, store, user):
        login(client)
        response = client.patch("/api/v1/users/avatar", data={"avatar": image("new.png")},
                                content_type="multipart/form-data")
        assert response.status_code == 200
        url = response.get_json()["data"]["avatar"]
        assert url != "/media/u1.png"
        assert url.endswith("new.png")
        assert store.find_by_id(user.id).avatar == url
        assert client.get(url).status_code == 200

    def test_replace_cover_image(self, client, store, user):
        login(client)
        response = client.patch("/api/v1/users/cover-image", data={"coverImage": image("cover.png")},
                                content_type="multipart/form-data")
        assert response.status_code == 200
        assert store.find_by_id(user.id).cover_image.endswith("cover.png")

    def test_missing_file(self, client, user):
        login(client)
        response = client.patch("/api/v1/users/avatar", data={}, content_type="multipart/form-data")
        assert response.status_code == 400
        assert response.get_json()["message"] == "Avatar file is missing"
