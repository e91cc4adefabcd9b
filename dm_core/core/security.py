"""
Bearer token verification.

Tokens are issued by the platform's auth service; this module only checks
the signature/expiry and extracts the user id.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, status

from dm_core.config import settings


class SecurityException(HTTPException):
    """Custom exception for security-related errors."""
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def extract_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract the token from an "Authorization: Bearer <token>" header value.

    Raises:
        SecurityException: If the header is missing or malformed
    """
    if not authorization:
        raise SecurityException("Missing authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise SecurityException("Invalid authorization header format")

    return parts[1]


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a bearer token.

    Returns:
        Token payload

    Raises:
        SecurityException: If the token is invalid, expired, or has no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise SecurityException("Token has expired")
    except jwt.InvalidTokenError as e:
        raise SecurityException(f"Invalid token: {e}")

    if not (payload.get("sub") or payload.get("id")):
        raise SecurityException("Token missing user ID claim")

    return payload


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed token. Used by tests and local tooling.

    Example:
        ```python
        token = create_access_token({"sub": user_id})
        ```
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({"iat": now, "exp": now + (expires_delta or timedelta(hours=24))})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
