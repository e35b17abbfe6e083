from fastapi import APIRouter
from fastapi.responses import JSONResponse

from dbsecrets.core.health import readiness_check

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/liveness/")
def liveness() -> bool:
    return True


@router.get("/health-check/", response_model=None)
def health_check() -> bool | JSONResponse:
    """True when storage (and Redis, if enabled) answer; 503 with the failing checks otherwise."""
    ok, failures = readiness_check()
    if ok:
        return True
    return JSONResponse(status_code=503, content={"unavailable": failures})
