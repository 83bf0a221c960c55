"""System service (bootstrap routes): unauthenticated probes for first contact."""

from tenantgate import __version__
from tenantgate.core.config import settings
from tenantgate.core.gateway import GatewayRequest, OperationResult, Success
from tenantgate.services.base import ServiceHandler


class SystemService(ServiceHandler):
    OPERATIONS = {
        "ping": "ping",
        "get_public_config": "get_public_config",
    }

    def ping(self, request: GatewayRequest) -> OperationResult:
        return Success({"status": "ok", "version": __version__})

    def get_public_config(self, request: GatewayRequest) -> OperationResult:
        return Success(
            {
                "project_name": settings.PROJECT_NAME,
                "api_prefix": settings.API_V1_STR,
                "otp_expire_minutes": settings.OTP_EXPIRE_MINUTES,
                "environment": settings.ENVIRONMENT,
            }
        )
