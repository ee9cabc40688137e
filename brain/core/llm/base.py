"""
Abstract base class for LLM providers.
Handles chat completion with optional function/tool calling.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class ToolCall(BaseModel):
    """A single function call requested by the model."""

    id: str = Field(..., description="Provider call ID (synthesized when the provider has none)")
    name: str = Field(..., description="Tool name")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Decoded arguments")


class ChatResult(BaseModel):
    """One model turn: text content and/or requested tool calls."""

    content: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)

    def has_tool_calls(self) -> bool:
        """
        Check if the model asked for tools to be run.

        Returns:
            True if at least one tool call is present
        """
        return len(self.tool_calls) > 0

    def to_message(self) -> dict[str, Any]:
        """
        Render this turn as an OpenAI-format assistant message for the history.

        Returns:
            Message dict with tool calls (arguments JSON-encoded) when present
        """
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in self.tool_calls
            ]
        return message


class LLMProvider(ABC):
    """
    Abstract base for LLM chat providers.

    Responsibilities:
    - Chat completion over an OpenAI-format message list
    - Function/tool calling (tool definitions in OpenAI format)
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        **kwargs,
    ) -> ChatResult:
        """
        Run one chat turn.

        Args:
            messages: OpenAI-format messages (system/user/assistant/tool)
            tools: Optional OpenAI-format function definitions
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0 = deterministic, 1.0 = creative)
            **kwargs: Provider-specific parameters

        Returns:
            ChatResult with content and any requested tool calls

        Raises:
            LLMError: If the provider call fails
        """
        pass

    @abstractmethod
    async def close(self):
        """
        Close any open connections.
        Optional to override if provider needs cleanup.
        """
