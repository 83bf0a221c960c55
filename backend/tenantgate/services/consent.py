"""Consent service (client routes): record and read consent per API key."""

import json
import logging
import uuid

from sqlmodel import Session, select

from tenantgate.core.gateway import (
    ErrorKind,
    Failure,
    GatewayRequest,
    OperationResult,
    Success,
)
from tenantgate.models import ConsentRecord, ConsentStatusEnum
from tenantgate.services.base import ServiceHandler

logger = logging.getLogger(__name__)


def _consent_public(record: ConsentRecord) -> dict:
    return {
        "consent_id": record.id,
        "principal_ref": record.principal_ref,
        "policy_id": record.policy_id,
        "purposes": json.loads(record.purposes) if record.purposes else [],
        "status": record.status.value,
        "created_at": record.created_at,
    }


class ConsentService(ServiceHandler):
    OPERATIONS = {
        "record_consent": "record_consent",
        "get_active_consent": "get_active_consent",
    }
    PLACEHOLDERS = frozenset(
        {
            "get_policy",
            "get_active_policy",
            "link_user",
            "submit_grievance",
            "get_grievance",
        }
    )

    def _api_key_id(self, request: GatewayRequest) -> uuid.UUID | None:
        try:
            return uuid.UUID(request.auth.principal_id or "")
        except ValueError:
            return None

    def record_consent(self, request: GatewayRequest) -> OperationResult:
        api_key_id = self._api_key_id(request)
        if api_key_id is None:
            return Failure(ErrorKind.FORBIDDEN, "Consent requires an API key principal.")
        principal_ref = str(request.body.get("principal_ref") or "").strip()
        policy_id = str(request.body.get("policy_id") or "").strip()
        if not principal_ref or not policy_id:
            return Failure(
                ErrorKind.BAD_REQUEST, "'principal_ref' and 'policy_id' are required."
            )
        purposes = request.body.get("purposes") or []

        with Session(self.engine) as session:
            previous = session.exec(
                select(ConsentRecord).where(
                    ConsentRecord.api_key_id == api_key_id,
                    ConsentRecord.principal_ref == principal_ref,
                    ConsentRecord.policy_id == policy_id,
                    ConsentRecord.status == ConsentStatusEnum.ACTIVE,
                )
            ).all()
            # New consent supersedes the active one for the same policy
            for old in previous:
                old.status = ConsentStatusEnum.WITHDRAWN
                session.add(old)
            record = ConsentRecord(
                api_key_id=api_key_id,
                principal_ref=principal_ref,
                policy_id=policy_id,
                purposes=json.dumps(purposes),
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            logger.info(
                "Recorded consent %s for key %s (superseded %d)",
                record.id,
                api_key_id,
                len(previous),
            )
            return Success(_consent_public(record), status=201)

    def get_active_consent(self, request: GatewayRequest) -> OperationResult:
        api_key_id = self._api_key_id(request)
        if api_key_id is None:
            return Failure(ErrorKind.FORBIDDEN, "Consent requires an API key principal.")
        principal_ref = str(request.body.get("principal_ref") or "").strip()
        if not principal_ref:
            return Failure(ErrorKind.BAD_REQUEST, "'principal_ref' is required.")
        stmt = select(ConsentRecord).where(
            ConsentRecord.api_key_id == api_key_id,
            ConsentRecord.principal_ref == principal_ref,
            ConsentRecord.status == ConsentStatusEnum.ACTIVE,
        )
        policy_id = request.body.get("policy_id")
        if policy_id:
            stmt = stmt.where(ConsentRecord.policy_id == str(policy_id))
        with Session(self.engine) as session:
            record = session.exec(
                stmt.order_by(ConsentRecord.created_at.desc())  # type: ignore[union-attr]
            ).first()
            if record is None:
                return Failure(ErrorKind.NOT_FOUND, "No active consent found.")
            return Success(_consent_public(record))
