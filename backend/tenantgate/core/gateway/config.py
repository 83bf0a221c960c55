"""
Gateway configuration: built once at startup, immutable afterwards.

Allowlists are enums so adding an operation is an explicit code change.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from tenantgate.core.gateway.resolver import CallerCategory, RouteTable

if TYPE_CHECKING:
    from tenantgate.core.config import Settings

DISPATCH_KEY = "_func"


class PublicAdminOperation(str, Enum):
    """Admin operations that run without a bearer token."""

    REQUEST_OTP = "request_otp"
    REGISTER_USER = "register_user"
    LOGIN = "login"
    LOGIN_OTP = "login_otp"


class ClientOperation(str, Enum):
    """Operations exposed to API-key clients. Everything else is 403."""

    RECORD_CONSENT = "record_consent"
    GET_ACTIVE_CONSENT = "get_active_consent"
    GET_POLICY = "get_policy"
    GET_ACTIVE_POLICY = "get_active_policy"
    LINK_USER = "link_user"
    SUBMIT_GRIEVANCE = "submit_grievance"
    GET_GRIEVANCE = "get_grievance"


@dataclass(frozen=True)
class CorsPolicy:
    allow_origin: str = "*"
    allow_methods: str = "GET, POST, PUT, DELETE, OPTIONS"
    allow_headers: str = (
        "Origin, Content-Type, Accept, Authorization, X-API-Key, X-API-Secret"
    )
    max_age: int = 3600

    def headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.allow_origin,
            "Access-Control-Allow-Methods": self.allow_methods,
            "Access-Control-Allow-Headers": self.allow_headers,
            "Access-Control-Max-Age": str(self.max_age),
        }


@dataclass(frozen=True)
class GatewayConfig:
    route_table: RouteTable
    api_prefix: str = "/api/v1/"
    dispatch_key: str = DISPATCH_KEY
    default_category: CallerCategory = CallerCategory.ADMIN
    admin_noauth_operations: frozenset[str] = field(
        default_factory=lambda: frozenset(op.value for op in PublicAdminOperation)
    )
    client_allowed_operations: frozenset[str] = field(
        default_factory=lambda: frozenset(op.value for op in ClientOperation)
    )
    cors: CorsPolicy = field(default_factory=CorsPolicy)


def build_gateway_config(settings: "Settings") -> GatewayConfig:
    """Turn environment settings into the frozen GatewayConfig."""
    prefix = settings.API_V1_STR.rstrip("/") + "/"
    routes = {
        prefix + service.strip().strip("/"): handler_id
        for service, handler_id in settings.GATEWAY_ROUTES.items()
    }
    return GatewayConfig(
        route_table=RouteTable.from_mapping(routes),
        api_prefix=prefix,
        default_category=CallerCategory(settings.GATEWAY_DEFAULT_CATEGORY),
        cors=CorsPolicy(
            allow_origin=settings.GATEWAY_CORS_ORIGIN,
            max_age=settings.GATEWAY_CORS_MAX_AGE,
        ),
    )
