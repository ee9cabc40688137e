"""
OpenAI LLM provider using official SDK.

Also serves any OpenAI-compatible endpoint via `base_url`.
"""

import json
from typing import Any

from openai import AsyncOpenAI

from brain.core.llm.base import ChatResult, LLMProvider, ToolCall
from brain.utils.exceptions import LLMError, ValidationError
from brain.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAILLM(LLMProvider):
    """
    OpenAI LLM provider for chat with tool calling.

    Uses the official OpenAI SDK chat completions API.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
    ):
        """
        Initialize OpenAI LLM provider.

        Args:
            api_key: OpenAI API key
            model: Model name (e.g., "gpt-4o", "gpt-4o-mini")
            organization: Optional organization ID
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
        """
        self.model = model

        self.client = AsyncOpenAI(
            api_key=api_key, organization=organization, base_url=base_url, timeout=timeout
        )

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        **kwargs,
    ) -> ChatResult:
        """
        Run one chat turn using OpenAI.

        Args:
            messages: OpenAI-format messages
            tools: Optional function definitions
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Additional parameters (e.g., stop, presence_penalty)
        Returns:
            ChatResult with content and decoded tool calls
        Raises:
            LLMError: If OpenAI API call fails
            ValidationError: If no messages are given
        """
        if not messages:
            raise ValidationError("Messages cannot be empty")

        params = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }
        if tools:
            params["tools"] = tools

        try:
            response = await self.client.chat.completions.create(**params)
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise LLMError(f"OpenAI API error: {e}", {"model": self.model}) from e

        message = response.choices[0].message
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=self._decode_arguments(call.function.arguments),
            )
            for call in (message.tool_calls or [])
        ]

        return ChatResult(content=message.content or "", tool_calls=tool_calls)

    def _decode_arguments(self, raw: str | None) -> dict[str, Any]:
        """Decode a JSON arguments string; undecodable input becomes an empty dict."""
        if not raw:
            return {}
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("OpenAI returned tool arguments that are not valid JSON")
            return {}
        return decoded if isinstance(decoded, dict) else {}

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
