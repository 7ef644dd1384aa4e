"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from reelgen import __version__
from reelgen.api.deps import LLMProviderDep, SettingsDep, StorageDep, VideoProviderDep
from reelgen.db.session import check_connection
from reelgen.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    components: dict[str, bool] | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Basic health check - is the API up?

    Reports which adapters are backed by a real provider rather than a stub.
    """
    components = {
        "video_gen": settings.video_gen_provider != "stub",
        "llm": settings.llm_provider != "stub",
        "storage": settings.storage_provider != "local",
    }
    return HealthResponse(status="healthy", version=__version__, components=components)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check that verifies the database and every configured provider.",
)
async def readiness_check(
    video_gen: VideoProviderDep,
    llm: LLMProviderDep,
    storage: StorageDep,
) -> ReadinessResponse:
    database_ok = False
    try:
        database_ok = check_connection()
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))

    components = {
        "video_gen": await video_gen.health_check(),
        "llm": await llm.health_check(),
        "storage": await storage.health_check(),
    }

    return ReadinessResponse(
        ready=database_ok and all(components.values()),
        database=database_ok,
        components=components,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
