"""LLM provider layer."""

from .litellm_provider import LiteLLMProvider, LLMResponse

__all__ = ["LiteLLMProvider", "LLMResponse"]
