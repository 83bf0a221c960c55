"""
Gateway validation: dispatch key, client allowlist, then per-operation schema.

Schemas are JSON Schema documents, one file per operation
(<operation>.json), loaded once when the validator is built. Operations
without a schema are accepted; the handler performs its own field checks.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from tenantgate.core.gateway.config import GatewayConfig
from tenantgate.core.gateway.errors import ErrorKind, Failure
from tenantgate.core.gateway.request_response import RequestEnvelope
from tenantgate.core.gateway.resolver import CallerCategory

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parents[2] / "schemas"


@dataclass(frozen=True, order=True)
class FieldError:
    field_path: str
    message: str

    def __str__(self) -> str:
        return f"{self.field_path}: {self.message}"


@runtime_checkable
class SchemaValidator(Protocol):
    def validate(self, operation_name: str, body: Mapping[str, Any]) -> set[FieldError]:
        ...


class JsonSchemaValidator:
    """SchemaValidator backed by jsonschema (Draft 2020-12)."""

    def __init__(self, schemas: Mapping[str, Mapping[str, Any]]) -> None:
        self._validators: dict[str, Draft202012Validator] = {}
        for name, schema in schemas.items():
            Draft202012Validator.check_schema(schema)
            self._validators[name.lower()] = Draft202012Validator(schema)

    @classmethod
    def from_directory(cls, directory: Path | str | None = None) -> "JsonSchemaValidator":
        """Load every *.json in directory; the file stem is the operation name."""
        root = Path(directory) if directory else DEFAULT_SCHEMA_DIR
        schemas: dict[str, dict[str, Any]] = {}
        if not root.is_dir():
            logger.warning("Schema directory %s not found; no schemas loaded", root)
            return cls(schemas)
        for path in sorted(root.glob("*.json")):
            with path.open(encoding="utf-8") as fh:
                schemas[path.stem] = json.load(fh)
        try:
            validator = cls(schemas)
        except SchemaError:
            logger.exception("Invalid JSON schema in %s", root)
            raise
        logger.info("Loaded %d request schemas from %s", len(schemas), root)
        return validator

    def validate(self, operation_name: str, body: Mapping[str, Any]) -> set[FieldError]:
        validator = self._validators.get(operation_name.lower())
        if validator is None:
            return set()
        errors: set[FieldError] = set()
        for err in validator.iter_errors(dict(body)):
            path = "$" + "".join(
                f"[{p}]" if isinstance(p, int) else f".{p}" for p in err.absolute_path
            )
            errors.add(FieldError(field_path=path, message=err.message))
        return errors


class ValidationGateway:
    """POST-only checks, in order: dispatch key (400), client allowlist (403), schema (400)."""

    def __init__(self, config: GatewayConfig, schema_validator: SchemaValidator) -> None:
        self._config = config
        self._schema_validator = schema_validator

    def check(
        self, envelope: RequestEnvelope, category: CallerCategory
    ) -> Failure | None:
        if envelope.method != "POST":
            return None
        if envelope.parsed_body is None:
            return Failure(ErrorKind.INVALID_BODY, "Missing JSON request body.")

        func = envelope.operation_name
        if not func:
            return Failure(
                ErrorKind.MISSING_DISPATCH_KEY,
                f"Missing required '{self._config.dispatch_key}' attribute in input JSON.",
            )

        if (
            category is CallerCategory.CLIENT
            and func.lower() not in self._config.client_allowed_operations
        ):
            return Failure(
                ErrorKind.OPERATION_NOT_PERMITTED,
                f"Function '{func}' is not allowed for client API access.",
            )

        errors = self._schema_validator.validate(func, envelope.parsed_body)
        if errors:
            return Failure(
                ErrorKind.SCHEMA_INVALID,
                "; ".join(str(e) for e in sorted(errors)),
            )
        return None
