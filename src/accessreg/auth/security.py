"""JWT utilities for caller authentication.

A principal proves who it is with a signed bearer token whose ``sub`` claim
is the principal identifier.  Issuing tokens to end users is the job of the
surrounding platform; ``create_access_token`` exists for the bootstrap CLI and
for tests.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from accessreg.settings import settings


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    """Create a signed JWT that expires after ``JWT_EXPIRE_MINUTES``.

    Parameters
    ----------
    data:
        Arbitrary claims to embed in the token (typically ``{"sub": principal}``).
    expires_minutes:
        Override for the configured lifetime.

    Returns
    -------
    str
        Encoded JWT string.
    """
    to_encode = data.copy()
    minutes = settings.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT.

    Raises
    ------
    jose.JWTError
        If the token is expired, malformed, or the signature is invalid.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        return payload
    except JWTError:
        raise
