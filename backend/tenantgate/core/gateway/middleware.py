"""
ASGI glue: route every request through the Gateway.

- OPTIONS on any path: preflight answered by the gateway.
- Paths under the API prefix: body buffered once, pipeline run in a thread.
- Anything else: passed through to the FastAPI routes, with CORS headers added.
"""

import asyncio

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from tenantgate.core.gateway.runner import Gateway


class GatewayMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, gateway: Gateway) -> None:
        super().__init__(app)
        self.gateway = gateway

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        method = request.method.upper()
        uri = request.url.path

        if method == "OPTIONS":
            return self.gateway.handle(method, uri)

        if not self.gateway.is_managed(uri):
            response = await call_next(request)
            response.headers.update(self.gateway.config.cors.headers())
            return response

        raw_body = await request.body()
        # Blocking pipeline (DB, token checks) stays off the event loop
        return await asyncio.to_thread(
            self.gateway.handle, method, uri, raw_body, dict(request.headers)
        )
