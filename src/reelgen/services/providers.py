"""Adapter selection from settings, shared by the API and the workers."""

from pathlib import Path

from sqlalchemy.orm import Session

from reelgen.adapters.llm.base import LLMProvider
from reelgen.adapters.llm.stub import StubLLMProvider
from reelgen.adapters.storage.base import ObjectStorage
from reelgen.adapters.storage.local import LocalStorage
from reelgen.adapters.video_gen.base import VideoGenProvider
from reelgen.adapters.video_gen.stub import StubVideoGenProvider
from reelgen.config import Settings
from reelgen.logging import get_logger
from reelgen.services.asset_pipeline import AssetPipeline
from reelgen.services.enricher import MetadataEnricher
from reelgen.services.guards import AdmissionGuard, DailyCapGuard, TokenBalanceGuard
from reelgen.services.processor import VideoProcessor
from reelgen.services.records import RecordUpdater

logger = get_logger(__name__)


def build_video_provider(settings: Settings) -> VideoGenProvider:
    """Get the configured video generation provider."""
    provider_name = settings.video_gen_provider.lower()

    if provider_name == "stub":
        return StubVideoGenProvider()
    elif provider_name == "replicate":
        from reelgen.adapters.video_gen.replicate import ReplicateProvider

        return ReplicateProvider(
            api_token=settings.require("replicate_api_token"),
            model=settings.replicate_model,
        )

    logger.warning("unknown_video_gen_provider", provider=provider_name, fallback="stub")
    return StubVideoGenProvider()


def build_llm_provider(settings: Settings) -> LLMProvider:
    """Get the configured LLM provider for metadata enrichment."""
    provider_name = settings.llm_provider.lower()

    if provider_name == "stub":
        return StubLLMProvider()
    elif provider_name == "openai":
        from reelgen.adapters.llm.openai import OpenAIProvider

        return OpenAIProvider(
            api_key=settings.require("openai_api_key"),
            model=settings.openai_model,
        )

    logger.warning("unknown_llm_provider", provider=provider_name, fallback="stub")
    return StubLLMProvider()


def build_storage(settings: Settings) -> ObjectStorage:
    """Get the configured object storage backend."""
    provider_name = settings.storage_provider.lower()

    if provider_name == "gcs":
        from reelgen.adapters.storage.gcs import GCSStorage

        return GCSStorage(
            bucket_name=settings.require("storage_bucket"),
            url_expiry=settings.signed_url_expiry,
            credentials_path=settings.google_application_credentials,
        )
    elif provider_name != "local":
        logger.warning("unknown_storage_provider", provider=provider_name, fallback="local")

    return LocalStorage(
        base_path=Path(settings.local_storage_path),
        base_url=settings.local_storage_base_url,
    )


def build_guards(session: Session, settings: Settings) -> list[AdmissionGuard]:
    """Enabled admission guards, in the order they are charged."""
    guards: list[AdmissionGuard] = []
    if settings.token_gate_enabled:
        guards.append(TokenBalanceGuard(session, cost=settings.generation_token_cost))
    if settings.daily_cap_enabled:
        guards.append(DailyCapGuard(session, limit=settings.daily_generation_limit))
    return guards


def build_processor(
    session: Session,
    settings: Settings,
    storage: ObjectStorage,
    llm: LLMProvider,
    propagate_rate_limits: bool = False,
) -> VideoProcessor:
    return VideoProcessor(
        pipeline=AssetPipeline.from_settings(storage, settings),
        enricher=MetadataEnricher(llm, propagate_rate_limits=propagate_rate_limits),
        updater=RecordUpdater(session),
    )
