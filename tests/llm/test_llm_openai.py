"""
Tests for OpenAI LLM provider.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from brain.core.llm.openai import OpenAILLM
from brain.utils.exceptions import LLMError, ValidationError


@pytest.fixture
def openai_llm():
    """Create OpenAI LLM for testing."""
    return OpenAILLM(api_key="test-key", model="gpt-4o", timeout=120.0)


def make_response(content: str | None = None, tool_calls: list | None = None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content, tool_calls=tool_calls))]
    return response


def make_tool_call(call_id: str, name: str, arguments: str) -> MagicMock:
    call = MagicMock(id=call_id)
    # `name` is reserved by MagicMock's constructor
    call.function.name = name
    call.function.arguments = arguments
    return call


MESSAGES = [{"role": "user", "content": "hello"}]


@pytest.mark.unit
@pytest.mark.asyncio
class TestOpenAILLM:
    """Test OpenAI LLM provider."""

    async def test_initialization(self, openai_llm):
        assert openai_llm.model == "gpt-4o"
        assert openai_llm.client is not None

    async def test_initialization_with_base_url(self):
        llm = OpenAILLM(api_key="test-key", base_url="https://custom.openai.com/v1")
        assert llm.client is not None

    async def test_chat_simple(self, openai_llm):
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = make_response("hi there")

            result = await openai_llm.chat(MESSAGES)

            assert result.content == "hi there"
            assert not result.has_tool_calls()
            call_args = mock_create.call_args
            assert call_args.kwargs["messages"] == MESSAGES
            assert call_args.kwargs["model"] == "gpt-4o"
            assert "tools" not in call_args.kwargs

    async def test_chat_with_parameters(self, openai_llm):
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = make_response("x")
            tools = [{"type": "function", "function": {"name": "list_documents"}}]

            await openai_llm.chat(MESSAGES, tools=tools, max_tokens=500, temperature=0.4, stop=["END"])

            call_args = mock_create.call_args
            assert call_args.kwargs["tools"] == tools
            assert call_args.kwargs["max_tokens"] == 500
            assert call_args.kwargs["temperature"] == 0.4
            assert call_args.kwargs["stop"] == ["END"]

    async def test_chat_tool_calls_decoded(self, openai_llm):
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = make_response(
                None,
                [
                    make_tool_call("call_1", "search_documents", '{"query": "roadmap"}'),
                    make_tool_call("call_2", "list_documents", "not json"),
                ],
            )

            result = await openai_llm.chat(MESSAGES)

            assert result.content == ""
            assert [(call.id, call.name) for call in result.tool_calls] == [
                ("call_1", "search_documents"),
                ("call_2", "list_documents"),
            ]
            assert result.tool_calls[0].arguments == {"query": "roadmap"}
            assert result.tool_calls[1].arguments == {}

    async def test_api_error_wrapped(self, openai_llm):
        with patch.object(
            openai_llm.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.side_effect = RuntimeError("rate limited")

            with pytest.raises(LLMError, match="rate limited"):
                await openai_llm.chat(MESSAGES)

    async def test_empty_messages(self, openai_llm):
        with pytest.raises(ValidationError):
            await openai_llm.chat([])

    async def test_close(self, openai_llm):
        with patch.object(openai_llm.client, "close", new_callable=AsyncMock) as mock_close:
            await openai_llm.close()
            mock_close.assert_called_once()
