"""
Operation handlers registered with the gateway, keyed by handler id.
"""

from sqlalchemy.engine import Engine

from tenantgate.core.gateway import HandlerRegistry
from tenantgate.services.consent import ConsentService
from tenantgate.services.system import SystemService
from tenantgate.services.user import UserService


def build_handler_registry(engine: Engine) -> HandlerRegistry:
    return HandlerRegistry(
        {
            "user": UserService(engine),
            "consent": ConsentService(engine),
            "system": SystemService(engine),
        }
    )


__all__ = [
    "ConsentService",
    "SystemService",
    "UserService",
    "build_handler_registry",
]
