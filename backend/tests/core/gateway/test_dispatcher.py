"""Unit tests for gateway dispatcher: registry resolution and validate/execute."""

import json
from unittest.mock import Mock

import pytest

from tenantgate.core.gateway.auth import AuthContext
from tenantgate.core.gateway.config import CorsPolicy
from tenantgate.core.gateway.dispatcher import (
    GatewayRequest,
    HandlerRegistry,
    OperationDispatcher,
    OperationHandler,
)
from tenantgate.core.gateway.errors import ErrorKind, Failure, Success
from tenantgate.core.gateway.request_response import RequestEnvelope, ResponseWriter
from tenantgate.core.gateway.resolver import CallerCategory


class EchoHandler:
    def __init__(self) -> None:
        self.executed = 0

    def validate(self, method: str, request: GatewayRequest) -> bool:
        return True

    def execute(self, request: GatewayRequest) -> Success:
        self.executed += 1
        return Success({"echo": request.body.get("value")})


class RejectingHandler:
    def __init__(self, write: bool) -> None:
        self.write = write
        self.executed = False

    def validate(self, method: str, request: GatewayRequest) -> bool:
        if self.write:
            request.writer.write_error(Failure(ErrorKind.BAD_REQUEST, "rejected"))
        return False

    def execute(self, request: GatewayRequest) -> Success:
        self.executed = True
        return Success()


def _request(body: dict | None = None) -> GatewayRequest:
    envelope = RequestEnvelope(
        method="POST",
        uri="/api/v1/admin/user",
        parsed_body=body or {"_func": "echo"},
        operation_name="echo",
    )
    return GatewayRequest(
        envelope=envelope,
        auth=AuthContext(category=CallerCategory.ADMIN),
        writer=ResponseWriter(envelope.uri, CorsPolicy()),
    )


def test_registry_is_read_only() -> None:
    source = {"echo": EchoHandler()}
    registry = HandlerRegistry(source)
    source["other"] = EchoHandler()
    assert "other" not in registry
    assert "echo" in registry
    with pytest.raises(TypeError):
        registry._handlers["x"] = EchoHandler()  # type: ignore[index]


def test_handler_protocol() -> None:
    assert isinstance(EchoHandler(), OperationHandler)
    assert not isinstance(object(), OperationHandler)


def test_dispatch_success() -> None:
    handler = EchoHandler()
    req = _request({"_func": "echo", "value": 7})
    OperationDispatcher(HandlerRegistry({"echo": handler})).dispatch("echo", req)
    assert handler.executed == 1
    assert req.writer.status_code == 200
    assert json.loads(req.writer.body) == {"success": True, "data": {"echo": 7}}


def test_dispatch_failure_result() -> None:
    handler = Mock(spec=["validate", "execute"])
    handler.validate.return_value = True
    handler.execute.return_value = Failure(ErrorKind.CONFLICT, "exists")
    req = _request()
    OperationDispatcher(HandlerRegistry({"h": handler})).dispatch("h", req)
    assert req.writer.status_code == 409
    assert json.loads(req.writer.body)["message"] == "exists"


def test_dispatch_unregistered_handler_is_500() -> None:
    req = _request()
    OperationDispatcher(HandlerRegistry({})).dispatch("missing", req)
    body = json.loads(req.writer.body)
    assert req.writer.status_code == 500
    assert body["error"] == "Configuration Error"


def test_dispatch_misconfigured_handler_is_500() -> None:
    out = OperationDispatcher(HandlerRegistry({"bad": object()})).resolve("bad")
    assert isinstance(out, Failure)
    assert out.kind is ErrorKind.HANDLER_RESOLUTION_FAILURE


def test_dispatch_validate_false_skips_execute() -> None:
    handler = RejectingHandler(write=True)
    req = _request()
    OperationDispatcher(HandlerRegistry({"h": handler})).dispatch("h", req)
    assert not handler.executed
    assert req.writer.status_code == 400


def test_dispatch_validate_false_without_write_leaves_writer_open() -> None:
    handler = RejectingHandler(write=False)
    req = _request()
    OperationDispatcher(HandlerRegistry({"h": handler})).dispatch("h", req)
    assert not handler.executed
    assert not req.writer.closed
    # The pipeline's final flush turns an unwritten response into a 500
    assert req.writer.to_response().status_code == 500


def test_dispatch_passes_method_to_validate() -> None:
    handler = Mock(spec=["validate", "execute"])
    handler.validate.return_value = True
    handler.execute.return_value = Success()
    req = _request()
    OperationDispatcher(HandlerRegistry({"h": handler})).dispatch("h", req)
    handler.validate.assert_called_once_with("POST", req)
    handler.execute.assert_called_once_with(req)
