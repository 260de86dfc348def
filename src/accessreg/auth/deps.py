"""FastAPI dependencies: authenticated caller and the registry instance."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from accessreg.auth.security import decode_access_token
from accessreg.core.registry import AccessRegistry

bearer_scheme = HTTPBearer()


def get_registry(request: Request) -> AccessRegistry:
    """Return the registry created by the application lifespan."""
    return request.app.state.registry


def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """Decode the JWT from the Authorization Bearer header and return the
    principal named by its ``sub`` claim, or raise 401.
    """
    token = credentials.credentials
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    principal: str | None = payload.get("sub")
    if not principal:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token payload missing subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal
