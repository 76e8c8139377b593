"""Authentication / authorization helpers.

Auth is deliberately small:

- Users collection (email/username + `hash.salt` credential + role)
- Stateless JWT session tokens (no server-side revocation list)

Admin requests send `Authorization: Bearer <token>`; a bare token is
accepted too. Every /api/admin resource is gated by `require_admin`.
"""

from .deps import get_session, optional_session, require_admin, require_role
from .crud import bootstrap_admin_if_needed, create_user

__all__ = [
    "get_session",
    "optional_session",
    "require_admin",
    "require_role",
    "bootstrap_admin_if_needed",
    "create_user",
]
