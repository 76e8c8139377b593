from datetime import timedelta

import pytest

from garden_site.auth.security import (
    create_access_token,
    extract_bearer,
    hash_password,
    needs_rehash,
    parse_expires_in,
    verify_access_token,
    verify_password,
)


def test_hash_and_verify_round_trip():
    credential = hash_password("password123")
    key_hex, salt_hex = credential.split(".")
    assert len(key_hex) == 128
    assert len(salt_hex) == 32
    assert verify_password("password123", credential)
    assert not verify_password("password124", credential)


def test_same_password_gets_fresh_salt():
    assert hash_password("pw-one") != hash_password("pw-one")


def test_blank_password_rejected():
    with pytest.raises(ValueError, match="password_blank"):
        hash_password("")


@pytest.mark.parametrize("credential", ["", "nodelimiter", ".", "abc.", ".abc", "zz.zz", "00.00"])
def test_malformed_credential_fails_closed(credential):
    assert verify_password("password123", credential) is False


def test_needs_rehash():
    assert not needs_rehash(hash_password("secret"))
    assert needs_rehash("$2b$10$legacybcrypt")
    assert needs_rehash("")


def test_parse_expires_in():
    assert parse_expires_in("24h") == timedelta(hours=24)
    assert parse_expires_in("30m") == timedelta(minutes=30)
    assert parse_expires_in("7d") == timedelta(days=7)
    assert parse_expires_in("3600") == timedelta(seconds=3600)
    assert parse_expires_in(60) == timedelta(seconds=60)
    for bad in ("", "abc", "0", "-5h"):
        with pytest.raises(ValueError):
            parse_expires_in(bad)


def test_token_round_trip():
    token = create_access_token(secret="s3cret", user_id="abc123", email="a@b.co", role="admin")
    claims = verify_access_token(token=token, secret="s3cret")
    assert claims is not None
    assert claims.subject_id == "abc123"
    assert claims.email == "a@b.co"
    assert claims.role == "admin"
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)
    assert claims.as_dict()["userId"] == "abc123"


def test_token_wrong_secret_rejected():
    token = create_access_token(secret="s3cret", user_id="abc123", email="a@b.co", role="admin")
    assert verify_access_token(token=token, secret="other") is None


def test_expired_token_rejected():
    token = create_access_token(
        secret="s3cret", user_id="abc123", email="a@b.co", role="admin", expires_in=timedelta(seconds=-10)
    )
    assert verify_access_token(token=token, secret="s3cret") is None


def test_garbage_token_rejected():
    assert verify_access_token(token="not.a.jwt", secret="s3cret") is None
    assert verify_access_token(token=None, secret="s3cret") is None


def test_create_token_requires_secret():
    with pytest.raises(ValueError):
        create_access_token(secret="", user_id="x", email="", role="admin")


def test_extract_bearer():
    assert extract_bearer("Bearer abc") == "abc"
    assert extract_bearer("bearer   abc ") == "abc"
    assert extract_bearer("abc") == "abc"
    assert extract_bearer("Bearer ") is None
    assert extract_bearer("") is None
    assert extract_bearer(None) is None
