"""On-demand metadata regeneration for stored videos."""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from reelgen.api.auth import CallerDep
from reelgen.api.deps import EnricherDep, RecordsDep, UpdaterDep
from reelgen.errors import NotFoundError, ValidationError
from reelgen.logging import get_logger

router = APIRouter(tags=["Metadata"])
logger = get_logger(__name__)


class MetadataRequest(BaseModel):
    """Request to (re)generate a video's description and tags."""

    model_config = ConfigDict(populate_by_name=True)

    video_id: str | None = Field(None, alias="videoId")
    title: str | None = Field(None, max_length=255)
    is_ai_generated: bool = Field(False, alias="isAiGenerated")


@router.post(
    "/metadata",
    summary="Regenerate metadata",
    description="Ask the LLM for a description and tags (and a new title for AI videos).",
)
async def update_metadata(
    request: MetadataRequest,
    caller: CallerDep,
    records: RecordsDep,
    enricher: EnricherDep,
    updater: UpdaterDep,
) -> dict[str, Any]:
    if not request.video_id or not request.title:
        raise ValidationError("Video ID and title are required")

    video = records.get(request.video_id)
    if video is None:
        raise NotFoundError("Video not found")

    logger.info(
        "metadata_update_requested",
        video_id=video.id,
        is_ai_generated=request.is_ai_generated,
        user_id=caller.user_id,
    )

    video.title = request.title
    video.is_ai_generated = request.is_ai_generated
    metadata = await enricher.enrich(request.title, is_ai_generated=request.is_ai_generated)
    video = updater.apply(video, metadata=metadata)

    return {"success": True, "data": video.to_dict()}
