"""Video generation and status endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from reelgen.api.auth import CallerDep
from reelgen.api.deps import PollerDep, SubmitterDep
from reelgen.logging import get_logger

router = APIRouter(tags=["Generation"])
logger = get_logger(__name__)


class GenerateRequest(BaseModel):
    """Request to generate a video."""

    prompt: str | None = Field(None, max_length=2000)


@router.post(
    "/generate",
    summary="Generate video",
    description="Submit a prompt to the video model. Returns at once; poll the status endpoint.",
)
@router.post("/render", include_in_schema=False)
@router.post("/api", include_in_schema=False)
async def generate_video(
    caller: CallerDep,
    submitter: SubmitterDep,
    request: GenerateRequest | None = None,
) -> dict[str, Any]:
    prompt = request.prompt if request else None
    result = await submitter.submit(prompt, caller)

    job = result.job
    if result.moderated or job is None:
        return {"success": True, "isModeratedContent": True}

    return {
        "success": True,
        "id": job.id,
        "status": job.status.value,
        "videoId": result.video_id,
    }


@router.get(
    "/status/{job_id}",
    summary="Job status",
    description="Generation status; the first poll after success publishes derived assets.",
)
async def job_status(job_id: str, caller: CallerDep, poller: PollerDep) -> dict[str, Any]:
    report = await poller.status(job_id)
    return report.to_response()


@router.get("/status", include_in_schema=False)
@router.get("/api", include_in_schema=False)
async def job_status_query(
    caller: CallerDep,
    poller: PollerDep,
    job_id: Annotated[str | None, Query(alias="id")] = None,
) -> dict[str, Any]:
    report = await poller.status(job_id)
    return report.to_response()
