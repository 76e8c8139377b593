from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from garden_site.config import Config
from garden_site.storage import Storage, normalize_email, normalize_username, public_user

from .security import hash_password, needs_rehash, verify_password


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


USER_ROLES = ("admin", "staff", "user")


def session_user(user: Mapping[str, Any]) -> Dict[str, Any]:
    """The user fields returned by login / validate-session."""
    return {
        "id": user.get("id"),
        "username": user.get("username"),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role"),
    }


def find_user(storage: Storage, identifier: str) -> Optional[Dict[str, Any]]:
    """Look a user up by email or username (login forms accept either)."""
    ident = (identifier or "").strip()
    if not ident:
        return None
    if "@" in ident:
        user = storage.get_user_by_email(ident)
        if user is not None:
            return user
    return storage.get_user_by_username(ident)


# Well-formed, matches no password. Unknown logins are checked against it too.
_UNKNOWN_USER_CREDENTIAL = "00" * 64 + "." + "00" * 16


def verify_user_credentials(storage: Storage, identifier: str, password: str) -> Optional[Dict[str, Any]]:
    user = find_user(storage, identifier)
    if user is None:
        verify_password(password, _UNKNOWN_USER_CREDENTIAL)
        return None
    credential = str(user.get("password") or "")
    if not verify_password(password, credential):
        return None
    if needs_rehash(credential):
        storage.set_user_credential(user["id"], hash_password(password))
    return user


def create_user(
    storage: Storage,
    *,
    email: str,
    password: str,
    username: str | None = None,
    name: str | None = None,
    role: str = "user",
) -> Dict[str, Any]:
    e = normalize_email(email)
    if not e:
        raise ValueError("email_blank")
    if role not in USER_ROLES:
        raise ValueError("invalid_role")
    # Username defaults to the local part of the email.
    u = normalize_username(username or e.split("@", 1)[0])
    if not u:
        raise ValueError("username_blank")

    if storage.get_user_by_email(e) is not None:
        raise ValueError("email_exists")
    if storage.get_user_by_username(u) is not None:
        raise ValueError("username_exists")

    user = storage.users.create(
        {
            "name": (name or "").strip() or u,
            "email": e,
            "username": u,
            "password": hash_password(password),
            "role": role,
        }
    )
    return public_user(user)


def update_user(storage: Storage, user_id: str, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Merge-patch a user; a supplied plaintext password is re-hashed."""
    changes = dict(data)
    if "role" in changes and changes["role"] not in USER_ROLES:
        raise ValueError("invalid_role")
    if changes.get("email"):
        changes["email"] = normalize_email(changes["email"])
        other = storage.get_user_by_email(changes["email"])
        if other is not None and other["id"] != str(user_id):
            raise ValueError("email_exists")
    if changes.get("username"):
        changes["username"] = normalize_username(changes["username"])
        other = storage.get_user_by_username(changes["username"])
        if other is not None and other["id"] != str(user_id):
            raise ValueError("username_exists")
    if changes.get("password"):
        changes["password"] = hash_password(str(changes["password"]))
    user = storage.users.update(user_id, changes)
    return public_user(user) if user is not None else None


def touch_last_login(storage: Storage, user_id: str) -> None:
    storage.touch_last_login(user_id)


def bootstrap_admin_if_needed(cfg: Config, storage: Storage) -> Optional[Dict[str, Any]]:
    """Create the first admin user if the users collection is empty.

    Controlled via environment variables so a new deployment has a
    deterministic way to log in.

    - AUTH_BOOTSTRAP_ADMIN_EMAIL (default: admin@example.com)
    - AUTH_BOOTSTRAP_ADMIN_USERNAME (default: admin)
    - AUTH_BOOTSTRAP_ADMIN_PASSWORD (default: password123)

    This only runs when there are 0 documents in `users`.
    """

    if storage.count_users() > 0:
        return None

    email = normalize_email(cfg.AUTH_BOOTSTRAP_ADMIN_EMAIL)
    password = cfg.AUTH_BOOTSTRAP_ADMIN_PASSWORD

    # If env explicitly clears these, don't create anything.
    if not email or not password:
        return None

    u = create_user(
        storage,
        email=email,
        password=password,
        username=cfg.AUTH_BOOTSTRAP_ADMIN_USERNAME or "admin",
        name="Admin User",
        role="admin",
    )
    _debug(f"Bootstrapped initial admin user: email={u.get('email')} role={u.get('role')}")
    return u
