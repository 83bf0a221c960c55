"""
Database engine and schema bootstrap.

Pool waits are bounded by DB_POOL_TIMEOUT_SECONDS; on PostgreSQL every
statement is bounded by DB_STATEMENT_TIMEOUT_MS.
"""

import logging
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from tenantgate.core.config import settings
from tenantgate.models import User, UserRoleEnum

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions/threads
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    kwargs: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "pool_timeout": settings.DB_POOL_TIMEOUT_SECONDS,
    }
    if url.startswith("postgresql"):
        kwargs["connect_args"] = {
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
        }
    return create_engine(url, **kwargs)


engine = build_engine(settings.SQLALCHEMY_DATABASE_URI)


def init_db(session: Session) -> None:
    """Create tables and the first admin user (idempotent)."""
    SQLModel.metadata.create_all(session.get_bind())

    user = session.exec(
        select(User).where(User.email == settings.FIRST_SUPERUSER)
    ).first()
    if not user:
        user = User(
            email=settings.FIRST_SUPERUSER,
            full_name=settings.FIRST_SUPERUSER_NAME,
            role=UserRoleEnum.ADMIN,
        )
        session.add(user)
        session.flush()
        logger.info("Created first admin user: %s", user.email)
