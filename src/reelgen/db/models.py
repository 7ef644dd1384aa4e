"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _new_id() -> str:
    return str(uuid4())


class VideoModel(Base):
    """A video record shown in the app feed."""

    __tablename__ = "videos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    job_id: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="Untitled Video")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    preview_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    hls_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    processing_state: Mapped[str] = mapped_column(
        String(20), default="pending", server_default="pending", index=True
    )
    processing_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    @property
    def has_metadata(self) -> bool:
        return self.description is not None and self.tags is not None

    @property
    def missing_assets(self) -> bool:
        return not (self.thumbnail_url and self.preview_url and self.hls_url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": self.tags,
            "url": self.url,
            "thumbnailUrl": self.thumbnail_url,
            "previewUrl": self.preview_url,
            "hlsUrl": self.hls_url,
            "isAiGenerated": self.is_ai_generated,
            "processing": self.processing_state,
        }


class TokenBalanceModel(Base):
    """Per-user generation token balance."""

    __tablename__ = "token_balances"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )


class DailyGenerationCountModel(Base):
    """Global generation counter, one row per UTC day."""

    __tablename__ = "daily_generation_counts"

    day: Mapped[str] = mapped_column(String(10), primary_key=True)  # YYYY-MM-DD
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )
