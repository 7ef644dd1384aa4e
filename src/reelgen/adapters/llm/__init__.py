"""LLM adapters."""

from reelgen.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from reelgen.adapters.llm.openai import OpenAIProvider
from reelgen.adapters.llm.stub import StubLLMProvider

__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "StubLLMProvider",
]
