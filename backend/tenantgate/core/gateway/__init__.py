"""
Gateway: resolver, auth, validation, request/response, dispatcher, runner.
"""

from tenantgate.core.gateway.auth import (
    AuthContext,
    AuthResolver,
    ClientCredential,
    ClientCredentialLookup,
    DatabaseClientCredentialLookup,
    JwtTokenVerifier,
    Principal,
    TokenVerifier,
)
from tenantgate.core.gateway.config import (
    ClientOperation,
    CorsPolicy,
    GatewayConfig,
    PublicAdminOperation,
    build_gateway_config,
)
from tenantgate.core.gateway.dispatcher import (
    GatewayRequest,
    HandlerRegistry,
    OperationDispatcher,
    OperationHandler,
)
from tenantgate.core.gateway.errors import ErrorKind, Failure, OperationResult, Success
from tenantgate.core.gateway.middleware import GatewayMiddleware
from tenantgate.core.gateway.request_response import (
    RequestEnvelope,
    ResponseWriter,
    read_envelope,
)
from tenantgate.core.gateway.resolver import (
    CallerCategory,
    Classification,
    Route,
    RouteTable,
    classify,
)
from tenantgate.core.gateway.runner import Gateway
from tenantgate.core.gateway.validation import (
    FieldError,
    JsonSchemaValidator,
    SchemaValidator,
    ValidationGateway,
)

__all__ = [
    "AuthContext",
    "AuthResolver",
    "CallerCategory",
    "Classification",
    "ClientCredential",
    "ClientCredentialLookup",
    "ClientOperation",
    "CorsPolicy",
    "DatabaseClientCredentialLookup",
    "ErrorKind",
    "Failure",
    "FieldError",
    "Gateway",
    "GatewayConfig",
    "GatewayMiddleware",
    "GatewayRequest",
    "HandlerRegistry",
    "JsonSchemaValidator",
    "JwtTokenVerifier",
    "OperationDispatcher",
    "OperationHandler",
    "OperationResult",
    "Principal",
    "PublicAdminOperation",
    "RequestEnvelope",
    "ResponseWriter",
    "Route",
    "RouteTable",
    "SchemaValidator",
    "Success",
    "TokenVerifier",
    "ValidationGateway",
    "build_gateway_config",
    "classify",
    "read_envelope",
]
