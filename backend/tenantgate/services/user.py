"""
User service (admin routes): email-OTP login, registration, lookups.

request_otp, login_otp and register_user run without a bearer token (see
PublicAdminOperation); everything else needs an admin JWT.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tenantgate.core.config import settings
from tenantgate.core.gateway import (
    ErrorKind,
    Failure,
    GatewayRequest,
    OperationResult,
    Success,
)
from tenantgate.core.security import create_admin_token, generate_otp, otp_matches
from tenantgate.models import User, UserRoleEnum
from tenantgate.services.base import ServiceHandler

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,6}$")
OTP_PATTERN = re.compile(r"^\d{6}$")


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on round-trip
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _user_public(user: User) -> dict[str, Any]:
    return {
        "user_id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role.value,
        "one_liner": user.one_liner,
        "linkedin": user.linkedin,
        "is_active": user.is_active,
        "last_login_at": user.last_login_at,
        "created_at": user.created_at,
    }


class UserService(ServiceHandler):
    OPERATIONS = {
        "request_otp": "request_otp",
        "login_otp": "login_otp",
        "register_user": "register_user",
        "get_user": "get_user",
        "list_users": "list_users",
    }
    PLACEHOLDERS = frozenset({"login", "update_user", "delete_user"})

    # --- Step 1: OTP request ---

    def request_otp(self, request: GatewayRequest) -> OperationResult:
        email = str(request.body.get("email") or "").strip()
        if not email:
            return Failure(ErrorKind.BAD_REQUEST, "Email is required to request OTP.")
        if not EMAIL_PATTERN.match(email):
            return Failure(ErrorKind.BAD_REQUEST, "Invalid email format.")

        otp = generate_otp()
        issued = False
        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.email == email)).first()
            if user is not None and user.is_active:
                user.otp_code = otp
                user.otp_expiry = datetime.now(timezone.utc) + timedelta(
                    minutes=settings.OTP_EXPIRE_MINUTES
                )
                session.add(user)
                session.commit()
                issued = True
                logger.info("OTP issued for user %s", user.id)
            else:
                # Same answer for unknown addresses; nothing is stored
                logger.info("OTP requested for unknown or inactive email")

        data: dict[str, Any] = {
            "message": f"If {email} is registered, an OTP has been issued."
        }
        if settings.ENVIRONMENT == "local" and issued:
            data["debug_otp"] = otp
        return Success(data)

    # --- Step 2: OTP login ---

    def login_otp(self, request: GatewayRequest) -> OperationResult:
        email = str(request.body.get("email") or "").strip()
        otp = str(request.body.get("otp") or "").strip()
        if not email or not otp:
            return Failure(
                ErrorKind.BAD_REQUEST, "Email and OTP are required for login."
            )
        if not OTP_PATTERN.match(otp):
            return Failure(ErrorKind.BAD_REQUEST, "OTP must be a 6-digit number.")

        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.email == email)).first()
            if user is None or not user.is_active:
                return Failure(ErrorKind.INVALID_CREDENTIALS, "Invalid credentials.")
            if user.otp_code is None or user.otp_expiry is None:
                return Failure(
                    ErrorKind.INVALID_CREDENTIALS,
                    "OTP not requested or expired. Please request a new OTP.",
                )
            if not otp_matches(otp, user.otp_code):
                return Failure(ErrorKind.INVALID_CREDENTIALS, "Invalid OTP.")

            now = datetime.now(timezone.utc)
            expired = now > _as_utc(user.otp_expiry)
            user.otp_code = None
            user.otp_expiry = None
            if expired:
                session.add(user)
                session.commit()
                return Failure(
                    ErrorKind.INVALID_CREDENTIALS,
                    "OTP expired. Please request a new one.",
                )

            user.last_login_at = now
            session.add(user)
            session.commit()
            session.refresh(user)
            token = create_admin_token(user.email, user.full_name, user.role.value)
            return Success(
                {
                    "message": "Login successful.",
                    "user_id": user.id,
                    "email": user.email,
                    "role": user.role.value,
                    "token": token,
                }
            )

    # --- Registration ---

    def register_user(self, request: GatewayRequest) -> OperationResult:
        body = request.body
        email = str(body.get("email") or "").strip()
        role_raw = str(body.get("role") or "").strip()
        contact_name = str(body.get("contact_name") or "").strip()
        if not email or not role_raw or not contact_name:
            return Failure(
                ErrorKind.BAD_REQUEST,
                "Missing required fields (email, role, contact_name).",
            )
        if not EMAIL_PATTERN.match(email):
            return Failure(ErrorKind.BAD_REQUEST, "Invalid email format.")
        try:
            role = UserRoleEnum(role_raw.upper())
        except ValueError:
            return Failure(ErrorKind.BAD_REQUEST, f"Unknown role: '{role_raw}'.")
        if role is UserRoleEnum.ADMIN and request.auth.role != UserRoleEnum.ADMIN.value:
            return Failure(
                ErrorKind.FORBIDDEN, "Only ADMIN users can register ADMIN accounts."
            )

        with Session(self.engine) as session:
            existing = session.exec(select(User).where(User.email == email)).first()
            if existing is not None:
                return Failure(ErrorKind.CONFLICT, "Email already exists.")
            user = User(
                email=email,
                full_name=contact_name,
                role=role,
                one_liner=body.get("one_liner"),
                linkedin=body.get("linkedin"),
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return Failure(ErrorKind.CONFLICT, "Email already exists.")
            session.refresh(user)
            logger.info("Registered user %s with role %s", user.id, role.value)
            return Success(
                {
                    "message": "User created successfully.",
                    "user_id": user.id,
                    "role": role.value,
                },
                status=201,
            )

    # --- Lookups ---

    def get_user(self, request: GatewayRequest) -> OperationResult:
        email = request.body.get("email")
        user_id = request.body.get("user_id")
        if email is None and user_id is None:
            return Failure(ErrorKind.BAD_REQUEST, "Provide 'email' or 'user_id'.")
        with Session(self.engine) as session:
            if user_id is not None:
                try:
                    user = session.get(User, int(user_id))
                except (TypeError, ValueError):
                    return Failure(
                        ErrorKind.BAD_REQUEST,
                        "Invalid 'user_id' format (must be a number).",
                    )
            else:
                user = session.exec(
                    select(User).where(User.email == str(email).strip())
                ).first()
            if user is None:
                return Failure(ErrorKind.NOT_FOUND, "User not found.")
            return Success(_user_public(user))

    def list_users(self, request: GatewayRequest) -> OperationResult:
        if request.auth.role != UserRoleEnum.ADMIN.value:
            return Failure(ErrorKind.FORBIDDEN, "Only ADMIN users can list users.")
        role_raw = request.body.get("role")
        stmt = select(User).order_by(User.id)
        if role_raw:
            try:
                stmt = stmt.where(User.role == UserRoleEnum(str(role_raw).upper()))
            except ValueError:
                return Failure(ErrorKind.BAD_REQUEST, f"Unknown role: '{role_raw}'.")
        with Session(self.engine) as session:
            users = session.exec(stmt).all()
            return Success([_user_public(u) for u in users])
