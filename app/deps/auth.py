from __future__ import annotations

from fastapi import Header, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param

from ..core.security import decode_token
from ..middlewares import principal_ctx_var
from ..models.user import ROLE_ADMIN


class AuthContext:
    """Identity carried by a verified access token.

    Only the token is checked here; handlers that need the account itself
    look it up so a deleted user can be reported as 404.
    """

    def __init__(self, *, user_id: int, role: str) -> None:
        self.user_id = user_id
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _unauthorized(detail: str = "No token, authorization denied") -> None:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


def _extract_token(authorization: str | None, x_auth_token: str | None) -> str | None:
    if authorization:
        scheme, credentials = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and credentials:
            return credentials
    token = (x_auth_token or "").strip()
    return token or None


async def require_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_auth_token: str | None = Header(default=None, alias="x-auth-token"),
) -> AuthContext:
    token = _extract_token(authorization, x_auth_token)
    if not token:
        _unauthorized()
    try:
        payload = decode_token(token, verify_type="access")
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    _set_principal(request, f"user:{payload.user_id}")
    return AuthContext(user_id=payload.user_id, role=payload.role)


async def require_admin(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_auth_token: str | None = Header(default=None, alias="x-auth-token"),
) -> AuthContext:
    auth = await require_user(request=request, authorization=authorization, x_auth_token=x_auth_token)
    if not auth.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Admins only.")
    return auth
