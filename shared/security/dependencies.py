from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from shared.errors import Unauthorized
from .jwt_handler import verify_access_token

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


async def get_current_user(request: Request, token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Dependency to validate the bearer JWT and return the acting user."""
    if not token:
        raise Unauthorized("Not authorized to access this route")

    payload = verify_access_token(token)
    if payload is None or payload.get("sub") is None:
        raise Unauthorized("Could not validate credentials")

    user = CurrentUser(id=str(payload["sub"]), role=payload.get("role", "user"))

    # Store in request state for downstream use (like rate limiting)
    request.state.user_id = user.id
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise Unauthorized(f"User role '{user.role}' is not authorized to access this route")
    return user
