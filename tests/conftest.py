"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["API_SECRET_KEY"] = "test-secret"
os.environ["VIDEO_GEN_PROVIDER"] = "stub"
os.environ["LLM_PROVIDER"] = "stub"
os.environ["STORAGE_PROVIDER"] = "local"

SOURCE_BYTES = b"\x00\x00\x00\x18ftypmp42 fake video payload"


class FakeFFmpeg:
    """Stands in for the ffmpeg binary: records calls and writes the output file.

    Outputs whose file name is in ``fail_on`` raise FFmpegError instead.
    """

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[list[str]] = []

    async def __call__(self, args: list[str]) -> None:
        from reelgen.utils.ffmpeg import FFmpegError

        self.calls.append(args)
        output = Path(args[-1])
        if output.name in self.fail_on:
            raise FFmpegError(f"ffmpeg exited with code 1: cannot write {output.name}")

        if output.suffix == ".m3u8":
            (output.parent / "playlist0.ts").write_bytes(b"segment-0")
            (output.parent / "playlist1.ts").write_bytes(b"segment-1")
            output.write_text(
                "#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10.0,\nplaylist0.ts\n"
                "#EXTINF:5.0,\nplaylist1.ts\n#EXT-X-ENDLIST\n"
            )
        else:
            output.write_bytes(b"rendered " + output.name.encode())


def source_handler(request: httpx.Request) -> httpx.Response:
    if "missing" in request.url.path:
        return httpx.Response(404)
    return httpx.Response(200, content=SOURCE_BYTES)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer test-secret", "X-User-Id": "user-1"}


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite shared by every connection in a test."""
    from reelgen.db.models import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path: Path):
    """Local storage rooted in the test's temp directory."""
    from reelgen.adapters.storage.local import LocalStorage

    return LocalStorage(base_path=tmp_path / "storage", base_url="https://cdn.test/media")


@pytest.fixture
def fake_ffmpeg() -> FakeFFmpeg:
    return FakeFFmpeg()


@pytest.fixture
def work_root(tmp_path: Path) -> Path:
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def make_pipeline(storage, work_root: Path):
    """Build a pipeline over local storage; ``fail_on`` names ffmpeg outputs that fail."""
    from reelgen.services.asset_pipeline import AssetPipeline

    def _make(runner=None, fail_on: set[str] | None = None) -> AssetPipeline:
        return AssetPipeline(
            storage=storage,
            runner=runner or FakeFFmpeg(fail_on=fail_on),
            transport=httpx.MockTransport(source_handler),
            temp_root=work_root,
        )

    return _make


@pytest.fixture
def pipeline(make_pipeline, fake_ffmpeg: FakeFFmpeg):
    return make_pipeline(runner=fake_ffmpeg)


@pytest.fixture
def video_gen_provider():
    """Get a stub video generation provider that tests advance by hand."""
    from reelgen.adapters.video_gen.stub import StubVideoGenProvider

    return StubVideoGenProvider(auto_advance=False)


@pytest.fixture
def llm_provider():
    """Get a stub LLM provider."""
    from reelgen.adapters.llm.stub import StubLLMProvider

    return StubLLMProvider()


@pytest.fixture
def records(session: Session):
    from reelgen.services.records import VideoRepository

    return VideoRepository(session)


@pytest.fixture
def processor(session: Session, pipeline, llm_provider):
    from reelgen.services.enricher import MetadataEnricher
    from reelgen.services.processor import VideoProcessor
    from reelgen.services.records import RecordUpdater

    return VideoProcessor(
        pipeline=pipeline,
        enricher=MetadataEnricher(llm_provider),
        updater=RecordUpdater(session),
    )


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from reelgen.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(
    session_factory: sessionmaker[Session],
    video_gen_provider,
    llm_provider,
    storage,
    pipeline,
) -> Generator[TestClient, None, None]:
    """App client wired to in-memory persistence, stub providers and fake ffmpeg."""
    from reelgen.api import deps
    from reelgen.db.session import get_session
    from reelgen.main import app
    from reelgen.services.enricher import MetadataEnricher
    from reelgen.services.processor import VideoProcessor
    from reelgen.services.records import RecordUpdater

    def override_session() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_processor(session: deps.SessionDep) -> VideoProcessor:
        return VideoProcessor(
            pipeline=pipeline,
            enricher=MetadataEnricher(llm_provider),
            updater=RecordUpdater(session),
        )

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[deps.get_video_provider] = lambda: video_gen_provider
    app.dependency_overrides[deps.get_llm_provider] = lambda: llm_provider
    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_processor] = override_processor

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client

    app.dependency_overrides.clear()
