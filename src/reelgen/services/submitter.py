"""Job submission: validate, moderate, admit, submit."""

from collections.abc import Sequence

from reelgen.adapters.video_gen.base import VideoGenProvider, VideoGenRequest
from reelgen.domain.models import Caller, SubmissionResult
from reelgen.errors import ValidationError
from reelgen.logging import get_logger
from reelgen.services.guards import AdmissionGuard, acquire_all, release_all
from reelgen.services.moderation import find_blocked_term
from reelgen.services.records import VideoRepository

logger = get_logger(__name__)


class JobSubmitter:
    """Turns a prompt into a provider job and a pending video record.

    Moderated prompts never reach the guards or the provider, so they cost
    nothing. Guards are charged before the provider call and refunded if the
    call fails.
    """

    def __init__(
        self,
        provider: VideoGenProvider,
        records: VideoRepository,
        guards: Sequence[AdmissionGuard] = (),
        width: int = 1080,
        height: int = 1920,
        num_frames: int = 150,
        fps: int = 30,
    ) -> None:
        self.provider = provider
        self.records = records
        self.guards = list(guards)
        self.width = width
        self.height = height
        self.num_frames = num_frames
        self.fps = fps

    async def submit(self, prompt: str | None, caller: Caller) -> SubmissionResult:
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required")
        prompt = prompt.strip()

        blocked = find_blocked_term(prompt)
        if blocked is not None:
            logger.info("prompt_moderated", user_id=caller.user_id, term=blocked)
            return SubmissionResult(moderated=True)

        acquired = acquire_all(self.guards, caller)
        try:
            job = await self.provider.submit(
                VideoGenRequest(
                    prompt=prompt,
                    width=self.width,
                    height=self.height,
                    num_frames=self.num_frames,
                    fps=self.fps,
                )
            )
        except Exception:
            release_all(acquired, caller)
            raise

        video = self.records.create_for_job(job, caller)
        logger.info(
            "generation_submitted",
            job_id=job.id,
            video_id=video.id,
            provider=self.provider.name,
            user_id=caller.user_id,
        )
        return SubmissionResult(job=job, video_id=video.id)
