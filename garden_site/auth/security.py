from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


_JWT_ALG = "HS256"

# Credential format: hex(derived_key) + "." + hex(salt)
_DELIM = "."
_KDF_DIGEST = "sha512"
_KDF_ROUNDS = 100_000
_KEY_LEN = 64
_SALT_LEN = 16

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def _derive(password: str, salt: bytes) -> bytes:
    return pbkdf2_hmac(_KDF_DIGEST, password.encode("utf-8"), salt, _KDF_ROUNDS, _KEY_LEN)


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    salt = os.urandom(_SALT_LEN)
    return f"{_derive(password, salt).hex()}{_DELIM}{salt.hex()}"


def verify_password(password: str, credential: str) -> bool:
    """Check a plaintext password against a stored `hash.salt` credential.

    Fails closed: any malformed credential or derivation error gives False.
    """
    if not password or not credential:
        return False
    if _DELIM not in credential:
        return False
    stored_hex, _, salt_hex = credential.partition(_DELIM)
    if not stored_hex or not salt_hex:
        return False
    try:
        stored = bytes.fromhex(stored_hex)
        salt = bytes.fromhex(salt_hex)
        derived = _derive(password, salt)
    except Exception:
        return False
    return consteq(derived, stored)


def needs_rehash(credential: str) -> bool:
    """True when a stored credential isn't in the current `hash.salt` shape."""
    stored_hex, _, salt_hex = (credential or "").partition(_DELIM)
    if len(stored_hex) != _KEY_LEN * 2 or len(salt_hex) != _SALT_LEN * 2:
        return True
    try:
        bytes.fromhex(stored_hex)
        bytes.fromhex(salt_hex)
    except ValueError:
        return True
    return False


def parse_expires_in(value: str | int) -> timedelta:
    """Parse a token lifetime such as "24h", "30m", "7d", "45s" or "3600"."""
    if isinstance(value, int):
        seconds = value
    else:
        m = _DURATION_RE.match(str(value or ""))
        if m is None:
            raise ValueError(f"invalid_expires_in: {value!r}")
        seconds = int(m.group(1)) * _DURATION_UNITS[m.group(2).lower()]
    if seconds <= 0:
        raise ValueError(f"invalid_expires_in: {value!r}")
    return timedelta(seconds=seconds)


@dataclass(frozen=True)
class SessionClaims:
    """Decoded identity carried by a session token."""

    subject_id: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime

    def as_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.subject_id,
            "email": self.email,
            "role": self.role,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }


def create_access_token(
    *,
    secret: str,
    user_id: str,
    email: str,
    role: str,
    expires_in: str | int | timedelta = "24h",
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    ttl = expires_in if isinstance(expires_in, timedelta) else parse_expires_in(expires_in)
    now = datetime.now(timezone.utc)
    exp = now + ttl

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def verify_access_token(*, token: str | None, secret: str) -> Optional[SessionClaims]:
    """Validate signature and expiry; None on any failure."""
    if not token or not secret:
        return None
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_JWT_ALG],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        _debug("token rejected: expired")
        return None
    except jwt.InvalidTokenError as e:
        _debug(f"token rejected: {e}")
        return None

    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or not role:
        _debug("token rejected: missing sub/role")
        return None

    return SessionClaims(
        subject_id=str(sub),
        email=str(payload.get("email") or ""),
        role=str(role),
        issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )


def extract_bearer(header_value: str | None) -> Optional[str]:
    """Accept "Bearer <token>" or a bare token; None when absent."""
    if header_value is None:
        return None
    v = header_value.strip()
    if not v:
        return None
    if v[:7].lower() == "bearer ":
        v = v[7:].strip()
    return v or None
