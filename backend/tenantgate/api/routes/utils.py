from fastapi import APIRouter
from fastapi.responses import JSONResponse

from tenantgate.api.deps import EngineDep, GatewayDep
from tenantgate.core.health import liveness_check, readiness_check

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/liveness/", response_model=None)
def liveness() -> bool | JSONResponse:
    """
    Liveness probe: is the process alive and responsive?
    """
    ok, failures = liveness_check()
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "Process unhealthy", "data": failures},
        )
    return True


@router.get("/health-check/", response_model=None)
def health_check(engine: EngineDep, gateway: GatewayDep) -> bool | JSONResponse:
    """
    Readiness probe: database reachable and gateway routes loaded.
    Returns 200 with true if all checks pass; 503 otherwise.
    """
    ok, failures = readiness_check(engine, gateway)
    if not ok:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Service Unavailable",
                "data": failures,
            },
        )
    return True
