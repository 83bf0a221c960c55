"""
Base class for operation handlers.

A handler serves one route; the dispatch key in the body selects the
operation method. Subclasses declare OPERATIONS: operation name -> method
name. Unknown operations are 400.
"""

import logging
from collections.abc import Callable
from typing import ClassVar

from sqlalchemy.engine import Engine

from tenantgate.core.gateway import (
    ErrorKind,
    Failure,
    GatewayRequest,
    OperationResult,
)

logger = logging.getLogger(__name__)


def not_implemented(request: GatewayRequest) -> Failure:
    return Failure(
        ErrorKind.NOT_IMPLEMENTED,
        f"{request.operation_name} is not yet implemented.",
    )


class ServiceHandler:
    OPERATIONS: ClassVar[dict[str, str]] = {}
    PLACEHOLDERS: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def validate(self, method: str, request: GatewayRequest) -> bool:
        if method.upper() != "POST":
            request.writer.write_error(
                Failure(ErrorKind.METHOD_NOT_ALLOWED, "Only POST method is supported.")
            )
            return False
        return True

    def _operation(self, name: str) -> Callable[[GatewayRequest], OperationResult] | None:
        if name in self.PLACEHOLDERS:
            return not_implemented
        attr = self.OPERATIONS.get(name)
        return getattr(self, attr) if attr else None

    def execute(self, request: GatewayRequest) -> OperationResult:
        func = (request.operation_name or "").lower()
        operation = self._operation(func)
        if operation is None:
            return Failure(
                ErrorKind.BAD_REQUEST, f"Unknown function: '{request.operation_name}'."
            )
        return operation(request)
