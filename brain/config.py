"""
Configuration for Brain.

Sections are pydantic models. Values come from BRAIN_* environment variables
(optionally via a .env file), then a YAML file, then the model defaults.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "llama3.1:8b"
    base_url: str = "http://localhost:11434"
    api_key: str | None = None
    temperature: float = 0.0
    max_tokens: int = 4096
    timeout: float = 120.0


class AssistantConfig(BaseModel):
    """Assistant tool-loop configuration."""

    max_tool_iterations: int = Field(default=10, ge=1)
    enable_tools: bool = True


class StorageConfig(BaseModel):
    """Persistence configuration."""

    backend: str = "sqlite"
    db_path: str = "data/brain.db"
    # Previous-version snapshots kept per document
    keep_versions: int = Field(default=1, ge=1)


class DocumentsConfig(BaseModel):
    """Document creation defaults."""

    root: str = "/docs"
    default_title: str = "Untitled"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


# Config section -> environment variable prefix (BRAIN_<PREFIX>_<FIELD>)
ENV_PREFIXES = {
    "llm": "LLM",
    "assistant": "ASSISTANT",
    "storage": "STORAGE",
    "documents": "DOCUMENTS",
    "logging": "LOG",
}


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    documents: DocumentsConfig = Field(default_factory=DocumentsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def env_overrides(cls, env_file: str | Path | None = None) -> dict[str, dict[str, str]]:
        """
        Collect BRAIN_* variables, grouped by config section.

        Variables are named BRAIN_<SECTION>_<FIELD>, e.g. BRAIN_LLM_MODEL,
        BRAIN_STORAGE_KEEP_VERSIONS or BRAIN_LOG_TO_FILE. Empty values are
        ignored; type coercion is left to the section models.

        Args:
            env_file: Optional .env file, loaded without overriding the
                process environment (default: ./.env when present)

        Returns:
            Mapping of section name to {field: raw string value}
        """
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        overrides: dict[str, dict[str, str]] = {}
        for section, prefix in ENV_PREFIXES.items():
            model = cls.model_fields[section].annotation
            for field in model.model_fields:
                # logging.log_dir -> BRAIN_LOG_DIR rather than BRAIN_LOG_LOG_DIR
                suffix = field.removeprefix("log_") if section == "logging" else field
                value = os.getenv(f"BRAIN_{prefix}_{suffix.upper()}")
                if value:
                    overrides.setdefault(section, {})[field] = value
        return overrides

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: process environment -> .env file -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in working directory)

        Returns:
            Config instance
        """
        return cls(**cls.env_overrides(env_file))

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        return cls(**_read_yaml(Path(yaml_path)))

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Environment values override single fields, so a YAML section keeps
        every key the environment does not set.
        """
        data: dict[str, Any] = {}
        if yaml_path and Path(yaml_path).exists():
            data = _read_yaml(Path(yaml_path))

        for section, values in cls.env_overrides(env_file).items():
            data[section] = {**(data.get(section) or {}), **values}
        return cls(**data)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path) as f:
        return yaml.safe_load(f) or {}
