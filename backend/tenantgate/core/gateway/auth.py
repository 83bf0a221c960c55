"""
Gateway auth: AuthResolver and the default credential collaborators.

Three mutually exclusive strategies, chosen by caller category:
- bootstrap: always authenticated
- admin: no-auth allowlist, else Authorization: Bearer <JWT>
- client: X-API-Key + X-API-Secret checked against the api_key table

A failure in any branch is final (401); branches never fall through.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from tenantgate.core.gateway.config import GatewayConfig
from tenantgate.core.gateway.errors import ErrorKind, Failure
from tenantgate.core.gateway.request_response import RequestEnvelope
from tenantgate.core.gateway.resolver import CallerCategory
from tenantgate.core.security import TokenError, decode_admin_token, verify_password
from tenantgate.models import ApiKey, ApiKeyStatusEnum

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
API_KEY_HEADER = "X-API-Key"
API_SECRET_HEADER = "X-API-Secret"
BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class Principal:
    email: str
    name: str | None = None
    role: str | None = None


@dataclass(frozen=True)
class ClientCredential:
    key_id: str
    active: bool
    name: str | None = None


@runtime_checkable
class TokenVerifier(Protocol):
    def verify(self, token: str) -> Principal | None:
        ...


@runtime_checkable
class ClientCredentialLookup(Protocol):
    def lookup(self, key_id: str, secret: str) -> ClientCredential | None:
        ...


@dataclass
class AuthContext:
    category: CallerCategory
    principal_id: str | None = None
    role: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)


def parse_bearer(header_value: str | None) -> str | None:
    """Return the token from 'Bearer <token>', or None if malformed."""
    parts = (header_value or "").strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    token = parts[1].strip()
    return token or None


class AuthResolver:
    def __init__(
        self,
        config: GatewayConfig,
        token_verifier: TokenVerifier,
        credential_lookup: ClientCredentialLookup,
    ) -> None:
        self._config = config
        self._token_verifier = token_verifier
        self._credential_lookup = credential_lookup

    def resolve(
        self, category: CallerCategory, envelope: RequestEnvelope
    ) -> AuthContext | Failure:
        if category is CallerCategory.BOOTSTRAP:
            return AuthContext(category=category)
        if category is CallerCategory.ADMIN:
            return self._resolve_admin(envelope)
        if category is CallerCategory.CLIENT:
            return self._resolve_client(envelope)
        return Failure(
            ErrorKind.INVALID_CREDENTIALS,
            "API category not specified or recognized. Access denied.",
        )

    def _resolve_admin(self, envelope: RequestEnvelope) -> AuthContext | Failure:
        func = (envelope.operation_name or "").lower()
        if func and func in self._config.admin_noauth_operations:
            return AuthContext(category=CallerCategory.ADMIN)

        token = parse_bearer(envelope.header(AUTHORIZATION_HEADER))
        if token is None:
            return Failure(
                ErrorKind.MISSING_CREDENTIALS,
                "Missing or malformed Authorization bearer token.",
            )
        try:
            principal = self._token_verifier.verify(token)
        except Exception:
            logger.exception("Token verification failed on %s", envelope.uri)
            principal = None
        if principal is None:
            return Failure(ErrorKind.TOKEN_INVALID, "Invalid or expired token.")

        attributes = {"email": principal.email}
        if principal.name:
            attributes["name"] = principal.name
        return AuthContext(
            category=CallerCategory.ADMIN,
            principal_id=principal.email,
            role=principal.role,
            attributes=attributes,
        )

    def _resolve_client(self, envelope: RequestEnvelope) -> AuthContext | Failure:
        key_id = (envelope.header(API_KEY_HEADER) or "").strip()
        secret = (envelope.header(API_SECRET_HEADER) or "").strip()
        if not key_id or not secret:
            return Failure(ErrorKind.MISSING_CREDENTIALS, "Missing API Key or Secret.")
        try:
            credential = self._credential_lookup.lookup(key_id, secret)
        except Exception:
            logger.exception("Client credential lookup failed on %s", envelope.uri)
            credential = None
        if credential is None or not credential.active:
            return Failure(
                ErrorKind.INVALID_CREDENTIALS, "Invalid or inactive API Key/Secret."
            )

        attributes = {"key_id": credential.key_id}
        if credential.name:
            attributes["client_name"] = credential.name
        return AuthContext(
            category=CallerCategory.CLIENT,
            principal_id=credential.key_id,
            attributes=attributes,
        )


# ---------------------------------------------------------------------------
# Default collaborators
# ---------------------------------------------------------------------------


class JwtTokenVerifier:
    """Verify admin JWTs issued by login_otp (HS256, type=admin)."""

    def verify(self, token: str) -> Principal | None:
        try:
            claims = decode_admin_token(token)
        except TokenError:
            return None
        email = claims.get("email") or claims.get("sub")
        if not email or not isinstance(email, str):
            return None
        return Principal(email=email, name=claims.get("name"), role=claims.get("role"))


class DatabaseClientCredentialLookup:
    """Look up (key id, secret) in the api_key table; secret is stored hashed."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def lookup(self, key_id: str, secret: str) -> ClientCredential | None:
        try:
            key_uuid = uuid.UUID(key_id)
        except ValueError:
            return None
        with Session(self._engine) as session:
            api_key = session.exec(select(ApiKey).where(ApiKey.id == key_uuid)).first()
        if api_key is None or not verify_password(secret, api_key.key_hash):
            return None
        return ClientCredential(
            key_id=str(api_key.id),
            active=api_key.status == ApiKeyStatusEnum.ACTIVE,
            name=api_key.name,
        )
