"""Tests for the job submitter."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from reelgen.domain.enums import JobStatus, ProcessingState
from reelgen.domain.models import Caller, GuardDecision
from reelgen.errors import PreconditionFailedError, UpstreamError, ValidationError
from reelgen.services.guards import AdmissionGuard
from reelgen.services.submitter import JobSubmitter


def make_guard(allowed: bool = True) -> MagicMock:
    guard = MagicMock(spec=AdmissionGuard)
    guard.name = "fake"
    guard.acquire.return_value = (
        GuardDecision.allow() if allowed else GuardDecision.deny("No capacity left")
    )
    return guard


class TestSubmit:
    @pytest.mark.asyncio
    async def test_accepts_prompt_and_creates_pending_record(
        self, video_gen_provider, records
    ) -> None:
        submitter = JobSubmitter(video_gen_provider, records)

        result = await submitter.submit("  A serene waterfall at sunrise ", Caller("u1"))

        assert not result.moderated
        assert result.job is not None
        assert result.job.status is JobStatus.STARTING

        request = video_gen_provider.submitted[0]
        assert request.prompt == "A serene waterfall at sunrise"
        assert (request.width, request.height, request.num_frames, request.fps) == (
            1080,
            1920,
            150,
            30,
        )

        video = records.get(result.video_id)
        assert video is not None
        assert video.job_id == result.job.id
        assert video.user_id == "u1"
        assert video.title == "A serene waterfall at sunrise"
        assert video.is_ai_generated is True
        assert video.processing_state == ProcessingState.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", [None, "", "   "])
    async def test_empty_prompt_is_rejected(self, video_gen_provider, records, prompt) -> None:
        submitter = JobSubmitter(video_gen_provider, records)

        with pytest.raises(ValidationError, match="Prompt is required"):
            await submitter.submit(prompt, Caller())

        assert video_gen_provider.submitted == []

    @pytest.mark.asyncio
    async def test_moderated_prompt_costs_nothing(self, video_gen_provider, records) -> None:
        guard = make_guard()
        submitter = JobSubmitter(video_gen_provider, records, guards=[guard])

        result = await submitter.submit("nsfw clip", Caller("u1"))

        assert result.moderated
        assert result.job is None
        assert video_gen_provider.submitted == []
        guard.acquire.assert_not_called()
        assert records.list_needing_processing() == []

    @pytest.mark.asyncio
    async def test_guard_denial_blocks_provider(self, video_gen_provider, records) -> None:
        submitter = JobSubmitter(video_gen_provider, records, guards=[make_guard(allowed=False)])

        with pytest.raises(PreconditionFailedError, match="No capacity left"):
            await submitter.submit("A serene waterfall", Caller("u1"))

        assert video_gen_provider.submitted == []

    @pytest.mark.asyncio
    async def test_provider_failure_releases_guards(self, records) -> None:
        provider = MagicMock()
        provider.name = "broken"
        provider.submit = AsyncMock(side_effect=UpstreamError("boom", provider="broken"))
        guard = make_guard()
        submitter = JobSubmitter(provider, records, guards=[guard])

        with pytest.raises(UpstreamError):
            await submitter.submit("A serene waterfall", Caller("u1"))

        guard.release.assert_called_once_with(Caller("u1"))
