from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .security import SessionClaims, extract_bearer, verify_access_token


_bearer = HTTPBearer(auto_error=False)


def _auth_error(status_code: int, message: str) -> HTTPException:
    # Same body for every auth failure so the admin panel can redirect to login.
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(
        status_code=status_code,
        detail={"message": message, "requiresAuth": True},
        headers=headers,
    )


def _jwt_secret(request: Request) -> str:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")
    return cfg.JWT_SECRET


def _request_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # Prefer a well-formed "Bearer <token>" header; otherwise accept a bare token.
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return extract_bearer(request.headers.get("Authorization"))


def optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[SessionClaims]:
    """Decoded session claims, or None when there is no valid token."""
    token = _request_token(request, credentials)
    if not token:
        return None
    return verify_access_token(token=token, secret=_jwt_secret(request))


def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> SessionClaims:
    """Authenticate a request.

    no token -> 401, invalid/expired token -> 401. On success the claims are
    attached to `request.state.user`.
    """
    token = _request_token(request, credentials)
    if not token:
        raise _auth_error(401, "Authentication required")

    claims = verify_access_token(token=token, secret=_jwt_secret(request))
    if claims is None:
        raise _auth_error(401, "Invalid or expired session")

    request.state.user = claims
    return claims


def require_role(role: str) -> Callable[..., SessionClaims]:
    def _dep(claims: SessionClaims = Depends(get_session)) -> SessionClaims:
        if claims.role != role:
            raise _auth_error(403, f"{role.capitalize()} access required")
        return claims

    _dep.__name__ = f"require_{role}"
    return _dep


require_admin = require_role("admin")
