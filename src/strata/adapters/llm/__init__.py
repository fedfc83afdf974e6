"""LLM adapters."""

from .adapter import LLMAdapter, LLMError, LLMRateLimitError, LLMResponse, LLMTimeoutError, Message
from .anthropic_adapter import AnthropicAdapter

__all__ = [
    "AnthropicAdapter",
    "LLMAdapter",
    "LLMError",
    "LLMRateLimitError",
    "LLMResponse",
    "LLMTimeoutError",
    "Message",
]
