"""Credential helpers: access tokens, password hashing and client metadata."""

import re
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from passlib.hash import pbkdf2_sha256
from starlette.requests import Request

from hotelops.config.settings import Settings, get_settings
from hotelops.core.exceptions import InvalidCredentialError

ACCESS_TOKEN_TYPE = "access"
ACCESS_TOKEN_COOKIE = "access_token"

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
_SPECIAL_CHARS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def hash_password(plain: str) -> str:
    return pbkdf2_sha256.hash(plain)
    try:
        return pbkdf2_sha256.verify(plain, hashed)
    except ValueError:
        # Malformed stored hash
        return False


def validate_password_strength(password: str) -> list[str]:
    """Check a password against the account password policy.

    Returns:
        Human-readable violations; empty when the password is acceptable
    """
    errors: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        errors.append(f"Password cannot exceed {PASSWORD_MAX_LENGTH} characters")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain a lowercase letter")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain an uppercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain a digit")
    if not _SPECIAL_CHARS.search(password):
        errors.append("Password must contain a special character")
    return errors


def create_access_token(
    user_id: UUID,
    role: str,
    hotel_id: UUID | None = None,
    permissions: list[str] | None = None,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a signed access token for an operator.

    Token issuance proper lives with the login flow; this helper exists for
    service-to-service calls and tests.
    """
    settings = settings or get_settings()
    now = datetime.now(UTC)
    ttl = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "hotel_id": str(hotel_id) if hotel_id else None,
        "role": role,
        "permissions": permissions or [],
        "type": ACCESS_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Verify an access token and return its claims.

    Raises:
        InvalidCredentialError: If the signature, expiry, type or subject is invalid
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidCredentialError("Access token has expired") from None
    except jwt.PyJWTError:
        raise InvalidCredentialError() from None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise InvalidCredentialError("Token is not an access token")
    try:
        payload["sub"] = UUID(str(payload["sub"]))
    except ValueError:
        raise InvalidCredentialError("Token subject is malformed") from None
    return payload


def extract_token(request: Request) -> str | None:
    """Read the access token from the Authorization header or session cookie."""
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def get_client_ip(request: Request) -> str | None:
    """Extract client IP from request, considering proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the chain is the original client
        return forwarded_for.split(",")[0].strip() or None

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return None
