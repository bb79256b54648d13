"""Root router: probes, service info and the versioned API."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import DBSession
from app.config import settings
from app.modules import discover_modules


API_PREFIX = "/api/v1"


class LivenessResponse(BaseModel):
    status: str = "alive"


class ReadinessResponse(BaseModel):
    """``checks`` maps each dependency to ``"ok"`` or its failure."""

    status: str
    checks: dict[str, str]


class InfoResponse(BaseModel):
    app: str
    environment: str
    debug: bool
    api_prefix: str
    default_assignment_workload: int
    overload_threshold: int


health_router = APIRouter(tags=["health"])


@health_router.get("/health/live", response_model=LivenessResponse, summary="Liveness probe")
async def liveness() -> LivenessResponse:
    """Report that the process is up. Touches nothing else."""
    return LivenessResponse()


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={503: {"model": ReadinessResponse}},
)
async def readiness(db: DBSession, response: Response) -> ReadinessResponse:
    """Check that the database answers; 503 when it does not."""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        database = exc.__class__.__name__

    checks = {"database": database}
    if database != "ok":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="degraded", checks=checks)
    return ReadinessResponse(status="ready", checks=checks)


@health_router.get("/info", response_model=InfoResponse, summary="Service info")
async def info() -> InfoResponse:
    """Service metadata and the active analytics policy."""
    return InfoResponse(
        app=settings.app_name,
        environment=settings.environment,
        debug=settings.debug,
        api_prefix=API_PREFIX,
        default_assignment_workload=settings.default_assignment_workload,
        overload_threshold=settings.overload_threshold,
    )


v1_router = APIRouter(prefix=API_PREFIX)
for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(v1_router)
