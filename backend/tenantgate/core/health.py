"""
Health-check helpers for liveness and readiness probes.

Liveness:  is the process alive and not deadlocked?  (cheap, no I/O)
Readiness: can it serve traffic?  (database reachable, routes wired)
"""

import logging

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from tenantgate.core.gateway import Gateway

logger = logging.getLogger(__name__)


def check_database(engine: Engine) -> bool:
    """Run SELECT 1. Returns True if ok."""
    try:
        with Session(engine) as session:
            session.exec(select(1)).first()
        return True
    except Exception:
        logger.warning("Database check failed", exc_info=True)
        return False


def check_routes(gateway: Gateway | None) -> bool:
    """The gateway is installed, has routes, and every route has a handler."""
    return (
        gateway is not None
        and len(gateway.config.route_table) > 0
        and not gateway.unresolved_routes
    )


def liveness_check() -> tuple[bool, list[str]]:
    return (True, [])


def readiness_check(engine: Engine, gateway: Gateway | None) -> tuple[bool, list[str]]:
    """Returns (ok, list of failure names)."""
    failures: list[str] = []
    if not check_database(engine):
        failures.append("database")
    if not check_routes(gateway):
        failures.append("gateway_routes")
    return (len(failures) == 0, failures)
