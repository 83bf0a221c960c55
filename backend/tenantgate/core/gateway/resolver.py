"""
Gateway resolver: caller classification and the static route table.

URL pattern: /api/v1/{category}/{service}. category is one of admin, client,
bootstrap; when the first segment is none of those the caller is classified
with the configured default (admin) and that segment is the service name, so
/api/v1/user resolves exactly like /api/v1/admin/user.

The route table is built once from configuration and never mutated, so
lookups need no locking.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

URL_DELIMITER = "/"


class CallerCategory(str, Enum):
    """Caller category, derived purely from the URL."""

    ADMIN = "admin"
    CLIENT = "client"
    BOOTSTRAP = "bootstrap"
    UNRECOGNIZED = "unrecognized"


_RESERVED_SEGMENTS: dict[str, CallerCategory] = {
    CallerCategory.ADMIN.value: CallerCategory.ADMIN,
    CallerCategory.CLIENT.value: CallerCategory.CLIENT,
    CallerCategory.BOOTSTRAP.value: CallerCategory.BOOTSTRAP,
}


@dataclass(frozen=True)
class Route:
    path: str
    handler_id: str


def normalize_route_path(path: str) -> str:
    return (path or "").strip().lower()


class RouteTable:
    """Immutable mapping of normalized service path -> handler id."""

    __slots__ = ("_routes",)

    def __init__(self, routes: Iterable[Route]) -> None:
        table: dict[str, str] = {}
        for route in routes:
            key = normalize_route_path(route.path)
            if not key:
                raise ValueError("Route path must not be empty")
            if key in table:
                raise ValueError(f"Duplicate route path: {route.path!r}")
            table[key] = route.handler_id
        self._routes: Mapping[str, str] = MappingProxyType(table)

    @classmethod
    def from_mapping(cls, registry: Mapping[str, str]) -> "RouteTable":
        return cls(Route(path=p, handler_id=h) for p, h in registry.items())

    def lookup(self, path: str) -> str | None:
        """Exact match after trim + lower-case. No prefix or wildcard fallback."""
        return self._routes.get(normalize_route_path(path))

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.lookup(path) is not None

    def __len__(self) -> int:
        return len(self._routes)

    def routes(self) -> list[Route]:
        return [Route(path=p, handler_id=h) for p, h in self._routes.items()]


@dataclass(frozen=True)
class Classification:
    category: CallerCategory
    service_name: str
    route_path: str


def is_managed_path(uri: str, api_prefix: str) -> bool:
    return (uri or "").startswith(api_prefix)


def classify(
    uri: str,
    api_prefix: str,
    default_category: CallerCategory = CallerCategory.ADMIN,
) -> Classification | None:
    """
    Split the URI after the API prefix into (category, service).

    Returns None when the URI is not under the prefix (pass-through).
    """
    if not is_managed_path(uri, api_prefix):
        return None
    segments = uri[len(api_prefix):].split(URL_DELIMITER)

    category = _RESERVED_SEGMENTS.get(segments[0].strip().lower())
    if category is None:
        category = default_category
        service_name = segments[0]
    else:
        service_name = segments[1] if len(segments) >= 2 else ""

    return Classification(
        category=category,
        service_name=service_name,
        route_path=api_prefix + service_name,
    )
