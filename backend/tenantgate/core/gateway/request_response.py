"""
Gateway request/response: BodyReader (RequestEnvelope) and ResponseWriter.

- read_envelope: parse the raw body buffered once by the ASGI layer into a
  RequestEnvelope; malformed JSON is a Failure, not an exception.
- ResponseWriter: one writer per request. Sets JSON content type and CORS
  headers on every outcome, writes exactly one envelope, then closes.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from starlette.responses import Response

from tenantgate.core.gateway.config import CorsPolicy
from tenantgate.core.gateway.errors import ErrorKind, Failure, Success

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass
class RequestEnvelope:
    method: str
    uri: str
    raw_body: bytes = b""
    parsed_body: dict[str, Any] | None = None
    operation_name: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower())


def read_envelope(
    method: str,
    uri: str,
    raw_body: bytes,
    headers: dict[str, str] | None = None,
    dispatch_key: str = "_func",
) -> RequestEnvelope | Failure:
    """
    Build the RequestEnvelope from the buffered body.

    Empty body -> parsed_body None (the validation stage decides whether that
    is an error). Non-UTF-8, non-JSON or non-object bodies -> INVALID_BODY.
    """
    envelope = RequestEnvelope(
        method=(method or "").upper(),
        uri=uri,
        raw_body=raw_body or b"",
        headers={k.lower(): v for k, v in (headers or {}).items()},
    )
    try:
        text = envelope.raw_body.decode("utf-8").strip()
    except UnicodeDecodeError:
        return Failure(
            ErrorKind.INVALID_BODY, "Request body must be UTF-8 encoded JSON."
        )
    if not text:
        return envelope
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        return Failure(ErrorKind.INVALID_BODY, f"Invalid JSON input: {e.msg}")
    if not isinstance(parsed, dict):
        return Failure(ErrorKind.INVALID_BODY, "Request body must be a JSON object.")

    envelope.parsed_body = parsed
    func = parsed.get(dispatch_key)
    if isinstance(func, str) and func.strip():
        envelope.operation_name = func.strip()
    return envelope


def _make_json_safe(obj: Any) -> Any:
    """Recursively convert non-JSON-serializable types to safe primitives.

    Handles: datetime, date, time, timedelta, Decimal, UUID, bytes, sets.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Decimal):
        if obj == int(obj):
            return int(obj)
        return float(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    if isinstance(obj, dict):
        return {str(k): _make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_make_json_safe(item) for item in obj]
    if isinstance(obj, set):
        return [_make_json_safe(item) for item in sorted(obj, key=str)]
    return str(obj)


def utc_timestamp() -> str:
    """ISO-8601 instant in UTC, e.g. 2024-05-01T10:00:00.123Z."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def error_envelope(failure: Failure, path: str) -> dict[str, Any]:
    return {
        "timestamp": utc_timestamp(),
        "status": failure.status,
        "error": failure.error,
        "message": failure.message,
        "path": path,
    }


def success_envelope(success: Success) -> dict[str, Any]:
    return {"success": True, "data": _make_json_safe(success.data)}


class ResponseWriter:
    """
    Per-request response sink.

    The first write wins and closes the writer; later writes are dropped
    and logged. close() may be called any number of times.
    """

    def __init__(self, path: str, cors: CorsPolicy) -> None:
        self.path = path
        self.status_code = 200
        self.body = b""
        self.headers: dict[str, str] = dict(cors.headers())
        self.headers["Content-Type"] = JSON_CONTENT_TYPE
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def _commit(self, status_code: int, payload: dict[str, Any] | None) -> bool:
        if self._closed:
            logger.warning(
                "Dropped response write on closed writer",
                extra={"path": self.path, "status_code": status_code},
            )
            return False
        self.status_code = status_code
        if payload is not None:
            self.body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.close()
        return True

    def write_error(self, failure: Failure) -> bool:
        return self._commit(failure.status, error_envelope(failure, self.path))

    def write_success(self, success: Success) -> bool:
        return self._commit(success.status, success_envelope(success))

    def write_result(self, result: Success | Failure) -> bool:
        if isinstance(result, Failure):
            return self.write_error(result)
        return self.write_success(result)

    def write_preflight(self) -> bool:
        """CORS preflight: 200, headers only, empty body."""
        return self._commit(200, None)

    def to_response(self) -> Response:
        if not self._closed:
            logger.error("No response written for %s; sending 500", self.path)
            self.write_error(
                Failure(ErrorKind.UNHANDLED_EXCEPTION, "An unexpected error occurred.")
            )
        return Response(
            content=self.body,
            status_code=self.status_code,
            headers=self.headers,
        )
