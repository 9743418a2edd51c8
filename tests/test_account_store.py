import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from models import storage
from models.account_store import StoreError


def test_find_by_username_or_email(store, user):
    assert store.find_by_credential_key("u1").id == user.id
    assert store.find_by_credential_key("u1@example.com").id == user.id
    assert store.find_by_credential_key("nobody") is None
    assert store.find_by_credential_key("") is None


def test_identifiers_are_case_sensitive(store, user):
    assert store.find_by_credential_key("U1") is None


def test_find_by_id(store, user):
    assert store.find_by_id(user.id).username == "u1"
    assert store.find_by_id("missing") is None


def test_set_and_clear_refresh_token(store, user):
    assert store.set_refresh_token(user.id, "r1")
    assert store.find_by_id(user.id).refresh_token == "r1"
    assert store.set_refresh_token(user.id, None)
    assert store.find_by_id(user.id).refresh_token is None


def test_writes_to_missing_account_report_not_found(store):
    assert not store.set_refresh_token("missing", "r1")
    assert not store.set_credential_hash("missing", "hash")
    assert store.update_profile("missing", full_name="x") is None


def test_replace_refresh_token_is_conditional(store, user):
    store.set_refresh_token(user.id, "r1")

    assert store.replace_refresh_token(user.id, "r1", "r2")
    assert store.find_by_id(user.id).refresh_token == "r2"

    # a second writer still holding r1 loses
    assert not store.replace_refresh_token(user.id, "r1", "r3")
    assert store.find_by_id(user.id).refresh_token == "r2"


def test_replace_after_logout_loses(store, user):
    store.set_refresh_token(user.id, "r1")
    store.set_refresh_token(user.id, None)
    assert not store.replace_refresh_token(user.id, "r1", "r2")
    assert store.find_by_id(user.id).refresh_token is None


def test_set_credential_hash(store, user):
    assert store.set_credential_hash(user.id, "new-hash")
    assert store.find_by_id(user.id).password_hash == "new-hash"


def test_exists_and_email_taken(store, user):
    assert store.exists("u1", "other@example.com")
    assert store.exists("other", "u1@example.com")
    assert not store.exists("other", "other@example.com")
    assert store.email_taken("u1@example.com")
    assert not store.email_taken("u1@example.com", exclude_id=user.id)


def test_update_profile(store, user):
    updated = store.update_profile(user.id, full_name="Renamed", avatar="/media/new.png")
    assert updated.full_name == "Renamed"
    assert updated.avatar == "/media/new.png"


def test_failed_commit_raises_store_error(store, user, monkeypatch):
    def broken_save():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(storage, "save", broken_save)
    with pytest.raises(StoreError):
        store.set_refresh_token(user.id, "r1")


def test_duplicate_email_on_update_raises_integrity_error(store, user):
    other = store.create_account(username="u2", email="u2@example.com", full_name="Two",
                                 password_hash="x", avatar="/media/u2.png")
    with pytest.raises(IntegrityError):
        store.update_profile(other.id, email="u1@example.com")
    # the session is usable again after the rollback
    assert store.find_by_id(other.id).email == "u2@example.com"


def test_set_credentials_writes_hash_and_token_together(store, user):
    assert store.set_credentials(user.id, "new-hash", "r1")
    found = store.find_by_id(user.id)
    assert found.password_hash == "new-hash"
    assert found.refresh_token == "r1"
    assert not store.set_credentials("missing", "new-hash", "r1")
