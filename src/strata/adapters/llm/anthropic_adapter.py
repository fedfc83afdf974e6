"""Anthropic (Claude) LLM adapter implementation."""

from __future__ import annotations

from typing import Any

import httpx

from .adapter import LLMError, LLMRateLimitError, LLMResponse, LLMTimeoutError, Message

__all__ = ["AnthropicAdapter"]


class AnthropicAdapter:
    """Anthropic Messages API adapter."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.anthropic.com/v1",
        default_model: str = "claude-3-5-sonnet-20241022",
        api_version: str = "2023-06-01",
    ) -> None:
        """Initialize Anthropic adapter.

        Parameters
        ----------
        api_key
            Anthropic API key
        base_url
            API base URL
        default_model
            Default model to use
        api_version
            API version header
        """
        if not api_key:
            raise LLMError("Anthropic API key is required (set ANTHROPIC_API_KEY)")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.api_version = api_version

    def _make_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _split_system(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
        """Anthropic takes the system prompt outside the message list."""
        system_parts = [msg.content for msg in messages if msg.role == "system"]
        conversation = [{"role": msg.role, "content": msg.content} for msg in messages if msg.role != "system"]
        return "\n\n".join(system_parts), conversation

    @staticmethod
    def _parse_response(response_data: dict[str, Any]) -> LLMResponse:
        text = "".join(
            block.get("text", "") for block in response_data.get("content", []) if block.get("type") == "text"
        )
        usage = response_data.get("usage", {})
        input_tokens = usage.get("input_tokens", 0)
        output_tokens = usage.get("output_tokens", 0)

        return LLMResponse(
            content=text,
            finish_reason=response_data.get("stop_reason", "end_turn"),
            usage={
                "prompt_tokens": input_tokens,
                "completion_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            },
            model=response_data.get("model", ""),
            raw_response=response_data,
        )

    def chat(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
    ) -> LLMResponse:
        """Send a conversation to the Messages API."""
        system_prompt, conversation = self._split_system(messages)

        payload: dict[str, Any] = {
            "model": model or self.default_model,
            "messages": conversation,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_prompt:
            payload["system"] = system_prompt

        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(
                    f"{self.base_url}/messages",
                    headers=self._make_headers(),
                    json=payload,
                )
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(f"Anthropic request timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Anthropic HTTP error: {e}") from e

        if response.status_code == 429:
            raise LLMRateLimitError("Anthropic rate limit exceeded")

        if response.status_code >= 400:
            error_msg = response.text
            try:
                error_msg = response.json().get("error", {}).get("message", error_msg)
            except ValueError:
                pass
            raise LLMError(f"Anthropic API error ({response.status_code}): {error_msg}")

        return self._parse_response(response.json())
