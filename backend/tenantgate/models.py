"""
Persistence models: User (admin staff, OTP login), ApiKey (partner client
credentials), ConsentRecord (client consent operations).
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Enum as SQLEnum, Text
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    """Timezone-aware UTC now (replaces deprecated datetime.utcnow())."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class UserRoleEnum(str, Enum):
    ADMIN = "ADMIN"
    MSME = "MSME"
    IT_AUDITOR = "IT_AUDITOR"
    FIN_PARTNER = "FIN_PARTNER"


class ApiKeyStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"


class ConsentStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str | None = Field(default=None, max_length=255)
    role: UserRoleEnum = Field(
        sa_column=Column(SQLEnum(UserRoleEnum), nullable=False),
    )
    one_liner: str | None = Field(default=None, max_length=512)
    linkedin: str | None = Field(default=None, max_length=512)
    is_active: bool = True
    otp_code: str | None = Field(default=None, max_length=16)
    otp_expiry: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# ApiKey - partner client credentials (X-API-Key = id, X-API-Secret = secret)
# ---------------------------------------------------------------------------


class ApiKey(SQLModel, table=True):
    __tablename__ = "api_keys"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=255)
    key_hash: str = Field(max_length=255)
    status: ApiKeyStatusEnum = Field(
        default=ApiKeyStatusEnum.ACTIVE,
        sa_column=Column(SQLEnum(ApiKeyStatusEnum), nullable=False),
    )
    created_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# ConsentRecord
# ---------------------------------------------------------------------------


class ConsentRecord(SQLModel, table=True):
    __tablename__ = "consent_records"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    api_key_id: uuid.UUID = Field(foreign_key="api_keys.id", index=True)
    principal_ref: str = Field(max_length=255, index=True)
    policy_id: str = Field(max_length=255)
    purposes: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    status: ConsentStatusEnum = Field(
        default=ConsentStatusEnum.ACTIVE,
        sa_column=Column(SQLEnum(ConsentStatusEnum), nullable=False),
    )
    created_at: datetime = Field(default_factory=_utc_now)
