"""LLM-generated title, description and tags for a video."""

import json

from reelgen.adapters.llm.base import LLMMessage, LLMProvider
from reelgen.domain.models import VideoMetadata
from reelgen.errors import RateLimitedError, UpstreamError
from reelgen.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates engaging social media video metadata. "
    "For AI-generated videos, create viral-worthy titles. Always respond with valid JSON "
    'in this format: {"title": "engaging title here", "description": "engaging description '
    'here", "tags": ["tag1", "tag2", "tag3"]}'
)

AI_GENERATED_TEMPLATE = (
    "This is an AI-generated video. Generate an engaging title, description, and 3-5 "
    "relevant tags that would work well on social media. The current title/prompt was: "
    '"{title}". Return as JSON with title, description, and tags.'
)

DESCRIPTIVE_TEMPLATE = (
    'Generate a catchy description and 3-5 relevant tags for this video title: "{title}"'
)


def build_prompt(title: str, is_ai_generated: bool) -> str:
    template = AI_GENERATED_TEMPLATE if is_ai_generated else DESCRIPTIVE_TEMPLATE
    return template.format(title=title)


def parse_metadata(content: str) -> VideoMetadata | None:
    """Validate an LLM reply. Returns None for anything off-shape."""
    text = content.strip()
    # Some models wrap JSON in a markdown fence despite instructions.
    if text.startswith("```"):
        text = text.strip("`")
        if text.startswith("json"):
            text = text[4:]
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict):
        return None
    description = data.get("description")
    tags = data.get("tags")
    if not description or not isinstance(description, str) or not isinstance(tags, list):
        return None

    title = data.get("title")
    return VideoMetadata(
        description=description.strip(),
        tags=[str(tag).strip() for tag in tags if str(tag).strip()],
        title=title.strip() if isinstance(title, str) and title.strip() else None,
    )


class MetadataEnricher:
    """Requests structured metadata from the LLM.

    Failures are soft: transport errors, unparseable replies and replies
    missing ``description`` or with non-list ``tags`` all yield ``None`` so the
    caller can carry on without metadata. With ``propagate_rate_limits`` a
    provider 429 is raised instead, so batch callers can back off and retry.
    """

    def __init__(
        self,
        llm: LLMProvider,
        temperature: float = 0.7,
        max_tokens: int = 200,
        propagate_rate_limits: bool = False,
    ) -> None:
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.propagate_rate_limits = propagate_rate_limits

    async def enrich(self, title: str, is_ai_generated: bool = False) -> VideoMetadata | None:
        messages = [
            LLMMessage(role="system", content=SYSTEM_PROMPT),
            LLMMessage(role="user", content=build_prompt(title, is_ai_generated)),
        ]

        try:
            response = await self.llm.complete(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                json_mode=True,
            )
        except RateLimitedError:
            if self.propagate_rate_limits:
                raise
            logger.warning("metadata_enrichment_rate_limited", provider=self.llm.name)
            return None
        except UpstreamError as e:
            logger.error("metadata_enrichment_failed", provider=self.llm.name, error=str(e))
            return None

        metadata = parse_metadata(response.content)
        if metadata is None:
            logger.warning(
                "metadata_response_invalid",
                provider=self.llm.name,
                content=response.content[:200],
            )
            return None

        logger.info(
            "metadata_enriched",
            provider=self.llm.name,
            tag_count=len(metadata.tags),
            title_regenerated=metadata.title is not None and is_ai_generated,
        )
        return metadata
