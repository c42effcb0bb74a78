"""
Authentication Module

Turns a bearer credential into a verified user identity. Tokens are HS256
JWTs (python-jose) whose ``sub`` claim names the user; issuing them is the
job of a separate auth service.

Usage:
    ```python
    from fastapi import Depends
    from video_assets.core.auth import get_current_user_id

    @router.get("/protected")
    async def protected_route(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
    ```
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from video_assets.config import Settings, get_settings
from video_assets.exceptions import AuthError


logger = logging.getLogger(__name__)


# HTTPBearer with auto_error disabled so a missing header surfaces as AuthError
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication.",
    auto_error=False,
)


def verify_token(token: str, settings: Settings) -> str:
    """
    Validate a JWT and return the user identity it carries.

    Args:
        token: The encoded JWT.
        settings: Settings providing secret_key and jwt_algorithm.

    Returns:
        str: The ``sub`` claim.

    Raises:
        AuthError: If the token is expired, has a bad signature, is malformed
            or has no subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        logger.warning("JWT has expired")
        raise AuthError("Token has expired") from e
    except JWTError as e:
        logger.warning("JWT validation failed: %s", str(e))
        raise AuthError("Invalid token") from e

    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        logger.warning("Token missing 'sub' claim")
        raise AuthError("Invalid token: missing user identifier")

    logger.debug("JWT validated for subject: %s", user_id)
    return user_id


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    FastAPI dependency resolving the caller's verified identity.

    Raises:
        AuthError: If no bearer credential was sent or it fails verification.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Missing bearer token")
    return verify_token(credentials.credentials, settings)
