import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from tenantgate.core.config import settings

_logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


ALGORITHM = "HS256"

# JWT token type claim; only admin tokens are accepted by the gateway
TOKEN_TYPE_ADMIN = "admin"

OTP_LENGTH = 6


class TokenError(Exception):
    """Raised when a token cannot be decoded or is not an admin token."""


# ---------------------------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------------------------


def create_access_token(
    subject: str | Any,
    expires_delta: timedelta,
    token_type: str = TOKEN_TYPE_ADMIN,
    claims: dict[str, Any] | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode: dict[str, Any] = dict(claims or {})
    to_encode.update({"exp": expire, "sub": str(subject), "type": token_type})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def create_admin_token(email: str, name: str | None, role: str) -> str:
    return create_access_token(
        subject=email,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        claims={"email": email, "name": name, "role": role},
    )


def decode_admin_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"verify_exp": True},
        )
    except InvalidTokenError as e:
        raise TokenError(str(e)) from e
    if payload.get("type") != TOKEN_TYPE_ADMIN:
        raise TokenError("Not an admin token")
    return payload


# ---------------------------------------------------------------------------
# Secret hashing (bcrypt) for API key secrets
# ---------------------------------------------------------------------------


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def generate_api_secret() -> str:
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# One-time passwords
# ---------------------------------------------------------------------------


def generate_otp() -> str:
    """Six-digit numeric OTP from a CSPRNG."""
    return f"{secrets.randbelow(10**OTP_LENGTH):0{OTP_LENGTH}d}"


def otp_matches(candidate: str, stored: str) -> bool:
    return secrets.compare_digest(candidate.encode(), stored.encode())
