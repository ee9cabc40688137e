"""
LLM provider abstraction layer for chat with tool calling.

Supported providers:
- Ollama (native SDK)
- OpenAI (official SDK, or any OpenAI-compatible endpoint)
"""
from brain.core.llm.base import ChatResult, LLMProvider, ToolCall
from brain.core.llm.ollama import OllamaLLM
from brain.core.llm.openai import OpenAILLM

__all__ = [
    "ChatResult",
    "LLMProvider",
    "OllamaLLM",
    "OpenAILLM",
    "ToolCall",
]
