"""FastAPI dependencies."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from reelgen.adapters.llm.base import LLMProvider
from reelgen.adapters.storage.base import ObjectStorage
from reelgen.adapters.video_gen.base import VideoGenProvider
from reelgen.config import Settings, get_settings
from reelgen.db.session import get_session
from reelgen.services.enricher import MetadataEnricher
from reelgen.services.poller import StatusPoller
from reelgen.services.processor import VideoProcessor
from reelgen.services.providers import (
    build_guards,
    build_llm_provider,
    build_processor,
    build_storage,
    build_video_provider,
)
from reelgen.services.records import RecordUpdater, VideoRepository
from reelgen.services.submitter import JobSubmitter

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


@lru_cache
def get_video_provider() -> VideoGenProvider:
    return build_video_provider(get_settings())


@lru_cache
def get_llm_provider() -> LLMProvider:
    return build_llm_provider(get_settings())


@lru_cache
def get_storage() -> ObjectStorage:
    return build_storage(get_settings())


VideoProviderDep = Annotated[VideoGenProvider, Depends(get_video_provider)]
LLMProviderDep = Annotated[LLMProvider, Depends(get_llm_provider)]
StorageDep = Annotated[ObjectStorage, Depends(get_storage)]


def get_records(session: SessionDep) -> VideoRepository:
    return VideoRepository(session)


RecordsDep = Annotated[VideoRepository, Depends(get_records)]


def get_submitter(
    session: SessionDep,
    settings: SettingsDep,
    provider: VideoProviderDep,
    records: RecordsDep,
) -> JobSubmitter:
    return JobSubmitter(
        provider=provider,
        records=records,
        guards=build_guards(session, settings),
        width=settings.video_width,
        height=settings.video_height,
        num_frames=settings.video_num_frames,
        fps=settings.video_fps,
    )


def get_processor(
    session: SessionDep,
    settings: SettingsDep,
    storage: StorageDep,
    llm: LLMProviderDep,
) -> VideoProcessor:
    return build_processor(session, settings, storage, llm)


def get_poller(
    provider: VideoProviderDep,
    records: RecordsDep,
    processor: Annotated[VideoProcessor, Depends(get_processor)],
) -> StatusPoller:
    return StatusPoller(provider=provider, records=records, processor=processor)


def get_enricher(llm: LLMProviderDep) -> MetadataEnricher:
    return MetadataEnricher(llm)


def get_updater(session: SessionDep) -> RecordUpdater:
    return RecordUpdater(session)


SubmitterDep = Annotated[JobSubmitter, Depends(get_submitter)]
PollerDep = Annotated[StatusPoller, Depends(get_poller)]
EnricherDep = Annotated[MetadataEnricher, Depends(get_enricher)]
UpdaterDep = Annotated[RecordUpdater, Depends(get_updater)]
