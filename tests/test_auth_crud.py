import pytest

from garden_site.auth.crud import (
    bootstrap_admin_if_needed,
    create_user,
    find_user,
    update_user,
    verify_user_credentials,
)
from garden_site.auth import crud, security
from garden_site.auth.security import verify_password
from garden_site.config import Config


def test_create_user_normalizes_and_hides_credential(storage):
    user = create_user(storage, email="  Alice@Example.COM ", password="secret1")
    assert user["email"] == "alice@example.com"
    assert user["username"] == "alice"
    assert user["role"] == "user"
    assert "password" not in user

    stored = storage.get_user(user["id"])
    assert verify_password("secret1", stored["password"])


def test_create_user_rejects_duplicates_and_bad_roles(storage):
    create_user(storage, email="a@example.com", password="secret1", username="ann")
    with pytest.raises(ValueError, match="email_exists"):
        create_user(storage, email="A@example.com", password="secret1", username="other")
    with pytest.raises(ValueError, match="username_exists"):
        create_user(storage, email="b@example.com", password="secret1", username="ANN")
    with pytest.raises(ValueError, match="invalid_role"):
        create_user(storage, email="c@example.com", password="secret1", role="root")
    with pytest.raises(ValueError, match="password_blank"):
        create_user(storage, email="d@example.com", password="")


def test_find_user_by_email_or_username(storage):
    user = create_user(storage, email="gardener@example.com", password="secret1", username="greenthumb")
    assert find_user(storage, "gardener@example.com")["id"] == user["id"]
    assert find_user(storage, "GreenThumb")["id"] == user["id"]
    assert find_user(storage, "") is None
    assert find_user(storage, "nobody") is None


def test_legacy_credential_is_upgraded_on_login(storage):
    user = create_user(storage, email="old@example.com", password="secret1")
    stored = storage.get_user(user["id"])["password"]
    # A short salt still verifies but is not the current credential shape.
    short_salt = b"\x01\x02\x03\x04"
    legacy = security._derive("secret1", short_salt).hex() + "." + short_salt.hex()
    storage.set_user_credential(user["id"], legacy)

    assert verify_user_credentials(storage, "old@example.com", "secret1") is not None
    upgraded = storage.get_user(user["id"])["password"]
    assert upgraded != legacy
    assert upgraded != stored
    assert verify_password("secret1", upgraded)


def test_update_user_rehashes_password(storage):
    user = create_user(storage, email="u@example.com", password="secret1")
    updated = update_user(storage, user["id"], {"name": "Una", "password": "changed1"})
    assert updated["name"] == "Una"
    assert "password" not in updated
    assert verify_user_credentials(storage, "u@example.com", "changed1") is not None
    assert verify_user_credentials(storage, "u@example.com", "secret1") is None

    # An empty password leaves the credential alone.
    update_user(storage, user["id"], {"password": ""})
    assert verify_user_credentials(storage, "u@example.com", "changed1") is not None

    with pytest.raises(ValueError, match="invalid_role"):
        update_user(storage, user["id"], {"role": "root"})


def test_bootstrap_admin_only_on_empty_users(storage):
    cfg = Config(JWT_SECRET="x")
    admin = bootstrap_admin_if_needed(cfg, storage)
    assert admin["role"] == "admin"
    assert admin["email"] == "admin@example.com"
    assert bootstrap_admin_if_needed(cfg, storage) is None
    assert storage.count_users() == 1


def test_bootstrap_admin_skipped_when_cleared(storage):
    cfg = Config(JWT_SECRET="x", AUTH_BOOTSTRAP_ADMIN_PASSWORD="")
    assert bootstrap_admin_if_needed(cfg, storage) is None
    assert storage.count_users() == 0


def test_update_user_rejects_taken_email_or_username(storage):
    create_user(storage, email="first@example.com", password="secret1", username="first")
    second = create_user(storage, email="second@example.com", password="secret1", username="second")

    with pytest.raises(ValueError, match="email_exists"):
        update_user(storage, second["id"], {"email": "FIRST@example.com"})
    with pytest.raises(ValueError, match="username_exists"):
        update_user(storage, second["id"], {"username": "First"})

    # Re-saving your own email or username is fine.
    same = update_user(storage, second["id"], {"email": "second@example.com", "username": "second"})
    assert same["email"] == "second@example.com"


def test_unknown_login_still_derives_a_key(storage, monkeypatch):
    calls = []
    real = crud.verify_password

    def _spy(password, credential):
        calls.append(credential)
        return real(password, credential)

    monkeypatch.setattr(crud, "verify_password", _spy)
    assert verify_user_credentials(storage, "ghost@example.com", "secret1") is None
    assert len(calls) == 1
