from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from linkup.config import Settings
from linkup.core.constants import Role
from linkup.core.models import CurrentUser

http_bearer = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with (overridable per test app)."""
    return request.app.state.settings


def _decode_token(token: str, settings: Settings) -> dict:
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )


def _payload_to_user(payload: dict) -> CurrentUser:
    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Missing sub in token")
    email = payload.get("email") or None
    roles = tuple(Role(r) for r in payload.get("roles") or [])
    return CurrentUser(id=UUID(user_id), email=email, roles=roles)


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: Settings = Depends(get_app_settings),
) -> CurrentUser | None:
    if not credentials or not credentials.credentials:
        return None
    try:
        payload = _decode_token(credentials.credentials, settings)
        return _payload_to_user(payload)
    except (JWTError, ValueError, KeyError):
        return None


async def get_current_user(
    user: CurrentUser | None = Depends(get_current_user_optional),
) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
