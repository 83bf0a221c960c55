"""
Gateway outcomes: Failure / Success result values returned by every stage.

Stages never raise for expected failures; they return a Failure and the
pipeline stops at the first one. Only the pipeline boundary turns unexpected
exceptions into UNHANDLED_EXCEPTION.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure taxonomy. Each kind maps to one HTTP status and error title."""

    ROUTE_NOT_FOUND = "route_not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    INVALID_BODY = "invalid_body"
    MISSING_DISPATCH_KEY = "missing_dispatch_key"
    SCHEMA_INVALID = "schema_invalid"
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_CREDENTIALS = "invalid_credentials"
    TOKEN_INVALID = "token_invalid"
    OPERATION_NOT_PERMITTED = "operation_not_permitted"
    HANDLER_RESOLUTION_FAILURE = "handler_resolution_failure"
    UNHANDLED_EXCEPTION = "unhandled_exception"
    CONFLICT = "conflict"
    # Handler-level kinds
    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    NOT_IMPLEMENTED = "not_implemented"


_STATUS_AND_TITLE: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.ROUTE_NOT_FOUND: (404, "Not Found"),
    ErrorKind.METHOD_NOT_ALLOWED: (405, "Method Not Allowed"),
    ErrorKind.INVALID_BODY: (400, "Bad Request"),
    ErrorKind.MISSING_DISPATCH_KEY: (400, "Bad Request"),
    ErrorKind.SCHEMA_INVALID: (400, "Bad Request"),
    ErrorKind.MISSING_CREDENTIALS: (401, "Unauthorized"),
    ErrorKind.INVALID_CREDENTIALS: (401, "Unauthorized"),
    ErrorKind.TOKEN_INVALID: (401, "Unauthorized"),
    ErrorKind.OPERATION_NOT_PERMITTED: (403, "Forbidden"),
    ErrorKind.HANDLER_RESOLUTION_FAILURE: (500, "Configuration Error"),
    ErrorKind.UNHANDLED_EXCEPTION: (500, "Internal Server Error"),
    ErrorKind.CONFLICT: (409, "Conflict"),
    ErrorKind.BAD_REQUEST: (400, "Bad Request"),
    ErrorKind.FORBIDDEN: (403, "Forbidden"),
    ErrorKind.NOT_FOUND: (404, "Not Found"),
    ErrorKind.NOT_IMPLEMENTED: (501, "Not Implemented"),
}


@dataclass(frozen=True)
class Failure:
    """Terminal outcome of a stage or handler."""

    kind: ErrorKind
    message: str

    @property
    def status(self) -> int:
        return _STATUS_AND_TITLE[self.kind][0]

    @property
    def error(self) -> str:
        return _STATUS_AND_TITLE[self.kind][1]


@dataclass(frozen=True)
class Success:
    """Successful handler outcome; status is 200, 201 or 202."""

    data: Any = None
    status: int = 200


OperationResult = Success | Failure
