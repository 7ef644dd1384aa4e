"""OpenAI LLM provider implementation."""

from typing import Any

import httpx

from reelgen.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from reelgen.errors import RateLimitedError, UpstreamError
from reelgen.logging import get_logger

logger = get_logger(__name__)

# Models that accept response_format={"type": "json_object"}
_JSON_MODE_PREFIXES = ("gpt-4o", "gpt-4-turbo", "gpt-4.1", "gpt-3.5-turbo-1106", "gpt-3.5-turbo-0125")


class OpenAIProvider(LLMProvider):
    """OpenAI API provider for GPT models."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    @property
    def supports_json_mode(self) -> bool:
        return self.model.startswith(_JSON_MODE_PREFIXES)

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate completion using OpenAI API."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        # Older models reject response_format; the system prompt still asks for JSON.
        if json_mode and self.supports_json_mode:
            payload["response_format"] = {"type": "json_object"}

        logger.debug(
            "openai_request",
            model=self.model,
            message_count=len(messages),
            json_mode=json_mode,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise UpstreamError(f"OpenAI request failed: {e}", provider="openai") from e

        if response.status_code == 429:
            raise RateLimitedError("OpenAI rate limit exceeded", provider="openai")
        if response.is_error:
            raise UpstreamError(
                f"OpenAI API error: {response.status_code} - {response.text[:200]}",
                provider="openai",
            )

        try:
            data = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
            usage = data.get("usage") or {}
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError(
                f"OpenAI returned an unexpected response: {response.text[:200]}",
                provider="openai",
            ) from e

        logger.info(
            "openai_response",
            model=self.model,
            tokens_used=usage.get("total_tokens", 0),
            finish_reason=choice.get("finish_reason"),
        )

        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            raw_response=data,
            finish_reason=choice.get("finish_reason"),
        )

    async def health_check(self) -> bool:
        """Check if OpenAI API is accessible."""
        try:
            headers = {"Authorization": f"Bearer {self.api_key}"}
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/models", headers=headers)
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("openai_health_check_failed", error=str(e))
            return False
