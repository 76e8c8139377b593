import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


DEFAULT_DB_URI = "mongodb://localhost:27017/garden_site"
DEFAULT_DB_NAME = "garden_site"


_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})
_FALSY = frozenset({"0", "false", "no", "n", "off"})


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Boolean env var; unset or unrecognized values give `default`."""
    v = (os.environ.get(name) or "").strip().lower()
    if v in _TRUTHY:
        return True
    if v in _FALSY:
        return False
    return default


def db_name_from_uri(uri: str) -> Optional[str]:
    """Return the database named in a mongodb:// URI path, if any."""
    try:
        path = urlparse(uri or "").path
    except Exception:
        return None
    name = (path or "").lstrip("/").split("/", 1)[0].strip()
    return name or None


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Build it with `load_config()` in the server and scripts. Tests construct
    it directly with the fields they care about.
    """

    # -----------------
    # Database
    # -----------------
    DB_URI: str = DEFAULT_DB_URI
    DB_NAME: str = DEFAULT_DB_NAME

    # -----------------
    # Auth (JWT)
    # -----------------
    # No default on purpose: load_config() refuses to run without it.
    JWT_SECRET: str = ""
    JWT_EXPIRES_IN: str = "24h"

    # Public self-registration of admin accounts (/api/admin/register).
    ADMIN_REGISTER: bool = False

    # First admin, created when the users collection is empty.
    AUTH_BOOTSTRAP_ADMIN_EMAIL: str = "admin@example.com"
    AUTH_BOOTSTRAP_ADMIN_USERNAME: str = "admin"
    AUTH_BOOTSTRAP_ADMIN_PASSWORD: str = "password123"

    # Seed services / portfolio / blog / testimonials / feature cards on an empty DB.
    SEED_DEMO_DATA: bool = True

    # -----------------
    # HTTP
    # -----------------
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    CORS_ALLOW_ORIGINS: str = "*"


def load_config() -> Config:
    """Read configuration from the environment.

    Raises RuntimeError when JWT_SECRET is unset; there is no fallback secret.
    """
    from garden_site.auth.security import parse_expires_in

    secret = (os.environ.get("JWT_SECRET") or "").strip()
    if not secret:
        raise RuntimeError("jwt_secret_missing: set JWT_SECRET before starting the server")

    expires_in = (os.environ.get("JWT_EXPIRES_IN") or "24h").strip()
    # Fail at startup rather than on the first login.
    parse_expires_in(expires_in)

    db_uri = os.environ.get("MONGODB_URI") or os.environ.get("DATABASE_URL") or DEFAULT_DB_URI
    db_name = os.environ.get("MONGODB_DB_NAME") or db_name_from_uri(db_uri) or DEFAULT_DB_NAME

    return Config(
        DB_URI=db_uri,
        DB_NAME=db_name,
        JWT_SECRET=secret,
        JWT_EXPIRES_IN=expires_in,
        ADMIN_REGISTER=_env_bool("ADMIN_REGISTER", False) is True,
        AUTH_BOOTSTRAP_ADMIN_EMAIL=os.environ.get("AUTH_BOOTSTRAP_ADMIN_EMAIL", "admin@example.com"),
        AUTH_BOOTSTRAP_ADMIN_USERNAME=os.environ.get("AUTH_BOOTSTRAP_ADMIN_USERNAME", "admin"),
        AUTH_BOOTSTRAP_ADMIN_PASSWORD=os.environ.get("AUTH_BOOTSTRAP_ADMIN_PASSWORD", "password123"),
        SEED_DEMO_DATA=_env_bool("SEED_DEMO_DATA", True) is True,
        HOST=os.environ.get("HOST", "0.0.0.0"),
        PORT=int(os.environ.get("PORT", "5000")),
        CORS_ALLOW_ORIGINS=os.environ.get("CORS_ALLOW_ORIGINS", "*"),
    )
