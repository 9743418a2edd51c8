"""Shared pytest fixtures for the Accounts API tests."""
import io
import os
import sys

import pytest

# Add project root to path
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.account_store import AccountStore  # noqa: E402
from services.sessions import SessionService  # noqa: E402
from utils.security import hash_password  # noqa: E402

PASSWORD = "correct-horse-battery"


@pytest.fixture
def app(tmp_path):
    """App on a fresh SQLite file with media written under tmp_path."""
    app = create_app(
        "testing",
        overrides={
            "DATABASE_URL": f"sqlite:///{tmp_path / 'accounts.db'}",
            "UPLOAD_TEMP_DIR": str(tmp_path / "temp"),
            "MEDIA_ROOT": str(tmp_path / "media"),
        },
    )
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return AccountStore(storage)


@pytest.fixture
def token_config(app):
    return app.extensions["token_config"]


@pytest.fixture
def sessions(store, token_config):
    return SessionService(store, token_config)


@pytest.fixture
def user(store):
    return store.create_account(
        username="u1",
        email="u1@example.com",
        full_name="User One",
        password_hash=hash_password(PASSWORD),
        avatar="/media/u1.png",
    )


def image(name="avatar.png"):
    return (io.BytesIO(b"\x89PNG fake image bytes"), name)


def login(client, identifier="u1", password=PASSWORD):
    key = "email" if "@" in identifier else "username"
    return client.post("/api/v1/users/login", json={key: identifier, "password": password})


def set_cookie_headers(response, name):
    return [h for h in response.headers.getlist("Set-Cookie") if h.startswith(f"{name}=")]
