"""
Gateway dispatcher: handler registry and the validate -> execute contract.

Handlers are registered once at startup (handler id -> instance). Resolution
failures are 500s, distinct from the route-table 404.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from tenantgate.core.gateway.auth import AuthContext
from tenantgate.core.gateway.errors import ErrorKind, Failure, OperationResult
from tenantgate.core.gateway.request_response import RequestEnvelope, ResponseWriter

logger = logging.getLogger(__name__)


@dataclass
class GatewayRequest:
    """What a handler sees: the envelope, the auth context and the writer."""

    envelope: RequestEnvelope
    auth: AuthContext
    writer: ResponseWriter

    @property
    def body(self) -> dict[str, Any]:
        return self.envelope.parsed_body or {}

    @property
    def operation_name(self) -> str | None:
        return self.envelope.operation_name

    @property
    def path(self) -> str:
        return self.envelope.uri


@runtime_checkable
class OperationHandler(Protocol):
    def validate(self, method: str, request: GatewayRequest) -> bool:
        """Handler-local checks. On False the handler has written the response."""
        ...

    def execute(self, request: GatewayRequest) -> OperationResult:
        ...


class HandlerRegistry:
    """Immutable handler id -> handler instance mapping."""

    __slots__ = ("_handlers",)

    def __init__(self, handlers: Mapping[str, Any]) -> None:
        self._handlers: Mapping[str, Any] = MappingProxyType(dict(handlers))

    def get(self, handler_id: str) -> Any | None:
        return self._handlers.get(handler_id)

    def __contains__(self, handler_id: object) -> bool:
        return handler_id in self._handlers


class OperationDispatcher:
    def __init__(self, registry: HandlerRegistry) -> None:
        self._registry = registry

    def resolve(self, handler_id: str) -> OperationHandler | Failure:
        handler = self._registry.get(handler_id)
        if handler is None:
            logger.error("No handler registered for id %r", handler_id)
            return Failure(
                ErrorKind.HANDLER_RESOLUTION_FAILURE,
                f"Handler not registered: {handler_id}",
            )
        if not isinstance(handler, OperationHandler):
            logger.error("Handler %r does not implement validate/execute", handler_id)
            return Failure(
                ErrorKind.HANDLER_RESOLUTION_FAILURE,
                f"Handler misconfigured: {handler_id}",
            )
        return handler

    def dispatch(self, handler_id: str, request: GatewayRequest) -> None:
        """Resolve and run the handler; every outcome ends up on request.writer."""
        handler = self.resolve(handler_id)
        if isinstance(handler, Failure):
            request.writer.write_error(handler)
            return

        method = request.envelope.method
        if not handler.validate(method, request):
            if not request.writer.closed:
                logger.error(
                    "Handler %r rejected %s %s without writing a response",
                    handler_id,
                    method,
                    request.path,
                )
            return

        result = handler.execute(request)
        request.writer.write_result(result)
