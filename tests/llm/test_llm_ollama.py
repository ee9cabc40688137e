"""
Tests for Ollama LLM provider.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from brain.core.llm.base import ChatResult, ToolCall
from brain.core.llm.ollama import OllamaLLM
from brain.utils.exceptions import LLMError


@pytest.fixture
def ollama_llm():
    """Create Ollama LLM for testing."""
    return OllamaLLM(host="http://localhost:11434", model="llama3.1:8b", timeout=120.0)


MESSAGES = [{"role": "user", "content": "hello"}]


@pytest.mark.unit
@pytest.mark.asyncio
class TestOllamaLLM:
    """Test Ollama LLM provider."""

    async def test_initialization(self, ollama_llm):
        assert ollama_llm.host == "http://localhost:11434"
        assert ollama_llm.model == "llama3.1:8b"
        assert ollama_llm.timeout == 120.0
        assert ollama_llm.client is not None

    async def test_chat_simple(self, ollama_llm):
        with patch.object(ollama_llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.return_value = {"message": {"content": "Paris"}}

            result = await ollama_llm.chat(MESSAGES, max_tokens=50, temperature=0.7)

            assert result.content == "Paris"
            assert result.tool_calls == []
            call_args = mock_chat.call_args
            assert call_args.kwargs["model"] == "llama3.1:8b"
            assert call_args.kwargs["options"] == {"temperature": 0.7, "num_predict": 50}
            assert "tools" not in call_args.kwargs

    async def test_chat_tool_calls(self, ollama_llm):
        with patch.object(ollama_llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.return_value = {
                "message": {
                    "content": "",
                    "tool_calls": [
                        {"function": {"name": "get_entity", "arguments": {"entityId": "ent_1"}}},
                        {"function": {"name": "list_documents", "arguments": "{}"}},
                    ],
                }
            }
            tools = [{"type": "function", "function": {"name": "get_entity"}}]

            result = await ollama_llm.chat(MESSAGES, tools=tools)

            assert mock_chat.call_args.kwargs["tools"] == tools
            assert [(call.id, call.name) for call in result.tool_calls] == [
                ("call_0", "get_entity"),
                ("call_1", "list_documents"),
            ]
            assert result.tool_calls[0].arguments == {"entityId": "ent_1"}
            assert result.tool_calls[1].arguments == {}

    async def test_history_converted(self, ollama_llm):
        assistant_turn = ChatResult(
            tool_calls=[ToolCall(id="call_0", name="read_document", arguments={"documentId": "d"})]
        ).to_message()
        messages = [
            {"role": "user", "content": "read it"},
            assistant_turn,
            {"role": "tool", "tool_call_id": "call_0", "content": json.dumps({"id": "d"})},
        ]

        with patch.object(ollama_llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.return_value = {"message": {"content": "done"}}

            await ollama_llm.chat(messages)

            sent = mock_chat.call_args.kwargs["messages"]
            assert sent[1]["tool_calls"] == [
                {"function": {"name": "read_document", "arguments": {"documentId": "d"}}}
            ]
            assert sent[2] == {"role": "tool", "content": '{"id": "d"}'}

    async def test_api_error_wrapped(self, ollama_llm):
        with patch.object(ollama_llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.side_effect = ConnectionError("connection refused")

            with pytest.raises(LLMError, match="connection refused"):
                await ollama_llm.chat(MESSAGES)
