"""
Ollama LLM provider using native ollama-python SDK.
"""

import json
from typing import Any

import ollama

from brain.core.llm.base import ChatResult, LLMProvider, ToolCall
from brain.utils.exceptions import LLMError, ValidationError
from brain.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaLLM(LLMProvider):
    """
    Ollama LLM provider for chat with tool calling.

    Ollama has no tool-call IDs and takes tool arguments as objects, so
    history messages are converted on the way in and IDs are synthesized on
    the way out.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        timeout: float = 120.0,
    ):
        """
        Initialize Ollama LLM provider.

        Args:
            host: Ollama server URL
            model: Model name (must support tools for the workspace tool loop)
            timeout: Request timeout in seconds
        """
        self.host = host
        self.model = model
        self.timeout = timeout

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        **kwargs,
    ) -> ChatResult:
        """
        Run one chat turn using Ollama.

        Args:
            messages: OpenAI-format messages
            tools: Optional OpenAI-format function definitions
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Additional options (passed to Ollama)

        Returns:
            ChatResult with content and tool calls

        Raises:
            LLMError: If the Ollama call fails
        """
        if not messages:
            raise ValidationError("Messages cannot be empty")

        options = {
            "temperature": temperature,
            "num_predict": max_tokens,
            **kwargs.get("options", {}),
        }

        params = {
            "model": self.model,
            "messages": [self._convert_message(message) for message in messages],
            "options": options,
            **{k: v for k, v in kwargs.items() if k != "options"},
        }
        if tools:
            params["tools"] = tools

        try:
            response = await self.client.chat(**params)
        except Exception as e:
            logger.error(f"Ollama API error: {e}")
            raise LLMError(f"Ollama API error: {e}", {"model": self.model}) from e

        message = response["message"]
        tool_calls = []
        for index, call in enumerate(message.get("tool_calls") or []):
            function = call["function"]
            arguments = function["arguments"]
            if isinstance(arguments, str):
                arguments = json.loads(arguments) if arguments else {}
            tool_calls.append(
                ToolCall(id=f"call_{index}", name=function["name"], arguments=dict(arguments))
            )

        return ChatResult(content=message.get("content") or "", tool_calls=tool_calls)

    def _convert_message(self, message: dict[str, Any]) -> dict[str, Any]:
        """
        Convert an OpenAI-format message to Ollama's shape.

        Assistant tool calls carry decoded argument objects; tool results drop
        the call ID.
        """
        converted: dict[str, Any] = {
            "role": message["role"],
            "content": message.get("content") or "",
        }

        if message.get("tool_calls"):
            converted["tool_calls"] = [
                {
                    "function": {
                        "name": call["function"]["name"],
                        "arguments": json.loads(call["function"]["arguments"] or "{}"),
                    }
                }
                for call in message["tool_calls"]
            ]

        return converted

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
