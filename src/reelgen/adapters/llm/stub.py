"""Stub LLM provider for testing."""

import json

from reelgen.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from reelgen.logging import get_logger

logger = get_logger(__name__)


class StubLLMProvider(LLMProvider):
    """Stub provider that returns canned metadata responses.

    ``content`` overrides the reply verbatim, which lets tests feed malformed
    output to the enricher.
    """

    def __init__(self, content: str | None = None) -> None:
        self.content = content
        self.calls: list[list[LLMMessage]] = []

    @property
    def name(self) -> str:
        return "stub"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return a mock completion response."""
        self.calls.append(messages)
        logger.info("stub_llm_complete", message_count=len(messages), json_mode=json_mode)

        user_message = ""
        for msg in reversed(messages):
            if msg.role == "user":
                user_message = msg.content
                break

        if self.content is not None:
            content = self.content
        elif json_mode:
            content = json.dumps(
                {
                    "title": "You Won't Believe This Moment",
                    "description": f"A short clip inspired by: {user_message[:80]}",
                    "tags": ["ai", "shorts", "viral"],
                }
            )
        else:
            content = f"This is a stub response for: {user_message[:100]}"

        return LLMResponse(
            content=content,
            model="stub-model",
            usage={
                "prompt_tokens": len(user_message.split()),
                "completion_tokens": len(content.split()),
                "total_tokens": len(user_message.split()) + len(content.split()),
            },
            finish_reason="stop",
        )
