"""
Assistant Service - one chat turn against the LLM with a bounded tool loop.

The model explores the workspace through tools, then answers with a JSON
object `{message, changes?, entityMutations?}`. Whatever it answers, the
turn ends in an AssistantResponse value: malformed output degrades to a
plain-text message, never an exception.
"""

import json
import re
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from brain.config import AssistantConfig, LLMConfig
from brain.core.llm.base import LLMProvider
from brain.models.assistant import AssistantResponse, EntityMutation
from brain.models.change import ProposedChange
from brain.models.message import Message
from brain.services.workspace_tools import WorkspaceTools
from brain.utils.exceptions import LLMError
from brain.utils.logger import get_logger

logger = get_logger(__name__)

# Outermost {...} span that mentions a "message" key
EMBEDDED_JSON_PATTERN = re.compile(r"\{.*\"message\".*\}", re.DOTALL)

_mutation_adapter = TypeAdapter(EntityMutation)

SYSTEM_PROMPT = """You are a helpful AI assistant embedded in a knowledge management app. You help users with conversations, analysis, and making changes to documents and entities.

## About the user
You're likely talking to a founder, PM, or operator at an early-stage company. They're busy, pragmatic, and appreciate directness.

## Tools
You have tools to explore the workspace:

Documents:
- list_documents: See all documents in the workspace
- read_document: Read the full content of a specific document
- search_documents: Search for text across all documents

Entities (the knowledge graph):
- list_entities: List all entities (people, organizations, projects, events)
- get_entity: Get full details of an entity including properties and relationships
- search_entities: Search entities by name
- create_entity: Create a new entity
- create_relationship: Create a relationship between two entities

Use these tools to gather context before responding. Don't assume you know what's in documents or entities - read them first if relevant.

## Making Changes
When you want to propose changes to documents, respond with a JSON object containing a "changes" array.

Response format (always valid JSON, no markdown code blocks):

For general conversation:
{
  "message": "Your response here."
}

When proposing changes:
{
  "message": "Your explanation of what you're proposing",
  "changes": [
    {
      "documentId": "id of document to change (use 'new' for creating a new document)",
      "description": "Brief description of this change",
      "operation": "insert" | "replace" | "delete" | "create",
      "target": "Where to make the change, or document title for create",
      "content": "<HTML content>"
    }
  ]
}

## Operations
- "insert": Add content (target: "after <heading>", "before <heading>", "at the end", "at the beginning")
- "replace": Replace a section (target: "replace <section name>")
- "delete": Remove a section (target: "delete <section name>")
- "create": Create new document (documentId: "new", target: document title)

## Guidelines
- Use tools to explore before answering questions about the workspace
- Be conversational and natural
- You can propose changes to multiple documents at once
- Only suggest changes when the user wants to modify content
- Use semantic HTML: <h1>-<h3>, <p>, <ul>/<li>, <strong>, <em>
- Keep changes focused and minimal"""


def parse_assistant_response(raw: str | None) -> AssistantResponse:
    """
    Turn the model's final text into an AssistantResponse.

    Tries a direct JSON parse, then the first embedded `{..."message"...}`
    span, then falls back to the raw text as the message. Changes and
    mutations that fail validation are dropped individually.

    Args:
        raw: Final assistant content

    Returns:
        AssistantResponse (never raises)
    """
    if not raw:
        return AssistantResponse(message="")

    payload = _load_json_object(raw)
    if payload is None:
        match = EMBEDDED_JSON_PATTERN.search(raw)
        if match:
            payload = _load_json_object(match.group(0))

    if payload is None:
        return AssistantResponse(message=raw)

    message = payload.get("message") or ""
    return AssistantResponse(
        message=message if isinstance(message, str) else str(message),
        changes=_parse_changes(payload.get("changes")),
        entity_mutations=_parse_mutations(payload.get("entityMutations")),
    )


def _load_json_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _parse_changes(raw_changes: Any) -> list[ProposedChange]:
    if not isinstance(raw_changes, list):
        return []

    changes = []
    for raw_change in raw_changes:
        try:
            changes.append(ProposedChange.model_validate(raw_change))
        except PydanticValidationError as e:
            logger.warning(f"Dropping malformed change from assistant output: {e.error_count()} errors")
    return changes


def _parse_mutations(raw_mutations: Any) -> list:
    if not isinstance(raw_mutations, list):
        return []

    mutations = []
    for raw_mutation in raw_mutations:
        if isinstance(raw_mutation, dict) and "kind" not in raw_mutation:
            # Older payloads tag the mutation with "type"
            raw_mutation = {**raw_mutation, "kind": raw_mutation.get("type")}
        try:
            mutations.append(_mutation_adapter.validate_python(raw_mutation))
        except PydanticValidationError as e:
            logger.warning(f"Dropping malformed entity mutation: {e.error_count()} errors")
    return mutations


class AssistantService:
    """
    Runs assistant turns: system prompt + history + user message, tool loop, parse.

    Features:
    - Workspace tools offered when a WorkspaceTools instance is passed
    - Tool rounds bounded by `max_tool_iterations`
    - Tool-queued entity mutations returned in the response
    """

    def __init__(
        self,
        llm: LLMProvider,
        config: AssistantConfig | None = None,
        llm_config: LLMConfig | None = None,
    ):
        """
        Initialize the assistant.

        Args:
            llm: Chat provider
            config: Tool-loop settings
            llm_config: Sampling settings (temperature, max_tokens)
        """
        self.llm = llm
        self.config = config or AssistantConfig()
        self.llm_config = llm_config or LLMConfig()

    async def respond(
        self,
        user_message: str,
        history: list[Message] | None = None,
        tools: WorkspaceTools | None = None,
    ) -> AssistantResponse:
        """
        Run one assistant turn.

        Args:
            user_message: The new user message
            history: Earlier messages of the session, oldest first
            tools: Workspace tool executor (None disables tools)

        Returns:
            AssistantResponse with tool-queued mutations ahead of any the
            final JSON declared

        Raises:
            LLMError: If the provider fails or the tool loop does not settle
        """
        messages: list[dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend(
            {"role": message.role.value, "content": message.content} for message in history or []
        )
        messages.append({"role": "user", "content": user_message})

        use_tools = tools is not None and self.config.enable_tools
        definitions = tools.definitions if use_tools else None

        for iteration in range(self.config.max_tool_iterations):
            result = await self.llm.chat(
                messages,
                tools=definitions,
                max_tokens=self.llm_config.max_tokens,
                temperature=self.llm_config.temperature,
            )

            if use_tools and result.has_tool_calls():
                messages.append(result.to_message())
                for call in result.tool_calls:
                    logger.debug(f"Assistant tool call {call.name} (round {iteration + 1})")
                    messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.id,
                            "content": tools.execute(call.name, call.arguments),
                        }
                    )
                continue

            response = parse_assistant_response(result.content)
            if use_tools:
                response.entity_mutations = tools.drain_mutations() + response.entity_mutations

            logger.info(
                f"Assistant turn finished with {len(response.changes)} changes "
                f"and {len(response.entity_mutations)} entity mutations"
            )
            return response

        raise LLMError(
            "Max tool iterations reached",
            {"max_tool_iterations": self.config.max_tool_iterations},
        )
