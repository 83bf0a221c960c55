"""
Gateway runner: the per-request pipeline.

Flow: OPTIONS short-circuit -> classify -> route lookup -> method check ->
read body -> validate -> authenticate -> dispatch -> write.

The pipeline is synchronous; the ASGI layer runs it in a worker thread. Every
stage returns a Failure instead of raising, and the first Failure becomes the
response. Anything raised is caught here, logged, and answered with a
generic 500.
"""

import logging

from starlette.responses import Response

from tenantgate.core.gateway.auth import (
    AuthResolver,
    ClientCredentialLookup,
    TokenVerifier,
)
from tenantgate.core.gateway.config import GatewayConfig
from tenantgate.core.gateway.dispatcher import (
    GatewayRequest,
    HandlerRegistry,
    OperationDispatcher,
)
from tenantgate.core.gateway.errors import ErrorKind, Failure
from tenantgate.core.gateway.request_response import ResponseWriter, read_envelope
from tenantgate.core.gateway.resolver import classify, is_managed_path
from tenantgate.core.gateway.validation import SchemaValidator, ValidationGateway

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred."


class Gateway:
    def __init__(
        self,
        config: GatewayConfig,
        *,
        token_verifier: TokenVerifier,
        credential_lookup: ClientCredentialLookup,
        schema_validator: SchemaValidator,
        registry: HandlerRegistry,
    ) -> None:
        self.config = config
        self._validation = ValidationGateway(config, schema_validator)
        self._auth = AuthResolver(config, token_verifier, credential_lookup)
        self._dispatcher = OperationDispatcher(registry)
        self.unresolved_routes = [
            route for route in config.route_table.routes() if route.handler_id not in registry
        ]
        for route in self.unresolved_routes:
            # Requests to these paths answer 500 until the handler is registered
            logger.error(
                "Route %s maps to unregistered handler %r", route.path, route.handler_id
            )

    def is_managed(self, uri: str) -> bool:
        return is_managed_path(uri, self.config.api_prefix)

    def handle(
        self,
        method: str,
        uri: str,
        raw_body: bytes = b"",
        headers: dict[str, str] | None = None,
    ) -> Response:
        writer = ResponseWriter(uri, self.config.cors)
        try:
            self._run(writer, (method or "").upper(), uri, raw_body, headers or {})
        except Exception:
            logger.exception("Unhandled exception on %s %s", method, uri)
            writer.write_error(
                Failure(ErrorKind.UNHANDLED_EXCEPTION, GENERIC_ERROR_MESSAGE)
            )
        return writer.to_response()

    def _fail(self, writer: ResponseWriter, method: str, failure: Failure) -> None:
        logger.info(
            "Gateway rejected %s %s: %s (%d) %s",
            method,
            writer.path,
            failure.kind.value,
            failure.status,
            failure.message,
        )
        writer.write_error(failure)

    def _run(
        self,
        writer: ResponseWriter,
        method: str,
        uri: str,
        raw_body: bytes,
        headers: dict[str, str],
    ) -> None:
        if method == "OPTIONS":
            writer.write_preflight()
            return

        classification = classify(
            uri, self.config.api_prefix, self.config.default_category
        )
        handler_id = (
            self.config.route_table.lookup(classification.route_path)
            if classification is not None
            else None
        )
        if classification is None or handler_id is None:
            self._fail(
                writer,
                method,
                Failure(ErrorKind.ROUTE_NOT_FOUND, f"API endpoint not found: {uri}"),
            )
            return

        if method != "POST":
            self._fail(
                writer,
                method,
                Failure(ErrorKind.METHOD_NOT_ALLOWED, "Only POST method is supported."),
            )
            return

        envelope = read_envelope(
            method, uri, raw_body, headers, dispatch_key=self.config.dispatch_key
        )
        if isinstance(envelope, Failure):
            self._fail(writer, method, envelope)
            return

        invalid = self._validation.check(envelope, classification.category)
        if invalid is not None:
            self._fail(writer, method, invalid)
            return

        auth = self._auth.resolve(classification.category, envelope)
        if isinstance(auth, Failure):
            self._fail(writer, method, auth)
            return

        logger.debug(
            "Dispatching %s %s to %s (%s, func=%s)",
            method,
            uri,
            handler_id,
            classification.category.value,
            envelope.operation_name,
        )
        self._dispatcher.dispatch(
            handler_id, GatewayRequest(envelope=envelope, auth=auth, writer=writer)
        )
