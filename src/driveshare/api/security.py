"""Bearer token decoding. Tokens carry the user id in ``sub``.

Issuing tokens belongs to the identity service in front of this API;
``create_access_token`` exists for tooling and tests.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from driveshare.access.exceptions import AuthenticationRequiredError
from driveshare.access.utils import utcnow

if TYPE_CHECKING:
    from driveshare.config import Settings

DEFAULT_TOKEN_TTL = timedelta(hours=24)


def create_access_token(
    user_id: int,
    settings: Settings,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    expire = utcnow() + (expires_delta or DEFAULT_TOKEN_TTL)
    claims = {"sub": str(user_id), "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> int:
    """Return the user id in *token*, or raise ``AuthenticationRequiredError``."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationRequiredError("Invalid or expired token") from exc
    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationRequiredError("Token has no subject")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise AuthenticationRequiredError("Token subject is not a user id") from exc
