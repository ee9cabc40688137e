"""
Factory for creating LLM providers.
"""

from brain.config import LLMConfig
from brain.core.llm.base import LLMProvider
from brain.core.llm.ollama import OllamaLLM
from brain.core.llm.openai import OpenAILLM
from brain.utils.exceptions import ConfigurationError


class LLMFactory:
    """Factory for creating LLM providers from configuration."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """
        Create LLM provider from configuration.

        Args:
            config: LLM configuration

        Returns:
            LLM provider instance

        Raises:
            ConfigurationError: If provider is not supported or misconfigured
        """
        if config.provider == "ollama":
            return OllamaLLM(
                host=config.base_url,
                model=config.model,
                timeout=config.timeout,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required", {"provider": "openai"})
            return OpenAILLM(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(
                f"Unsupported LLM provider: {config.provider}", {"provider": config.provider}
            )
