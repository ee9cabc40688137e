"""
Entity Extraction - propose knowledge-graph entities from meeting transcripts.

The LLM reads a rendered transcript and answers `{"entities": [{type, name,
context}]}`. Proposals come back as CreateEntityMutation values for the
caller to review or execute; nothing is written to the graph here.
"""

import json
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from brain.config import LLMConfig
from brain.core.llm.base import LLMProvider
from brain.models.assistant import CreateEntityMutation
from brain.models.transcript import Transcript
from brain.utils.exceptions import LLMError
from brain.utils.logger import get_logger

logger = get_logger(__name__)

MAX_TRANSCRIPT_CHARS = 8000
TRUNCATION_MARKER = "\n\n[Transcript truncated]"

# Outermost {...} span that mentions an "entities" key
EMBEDDED_ENTITIES_PATTERN = re.compile(r"\{.*\"entities\".*\}", re.DOTALL)

EXTRACTION_PROMPT = """You extract entities from meeting transcripts for a company knowledge base. Identify the people, organizations, projects and events the transcript mentions.

## Entity Types
- person: Individual people mentioned by name
- organization: Companies, teams, departments
- project: Named initiatives, products, features
- event: Meetings, conferences, launches with specific names

## Guidelines
- Only extract clearly named entities, not generic references such as "the team" or "that meeting"
- For each entity, give the context that makes it relevant: the quote or a short summary of where it is mentioned
- Be conservative and only propose entities you are confident about
- Mention a person's role or company in the context when the transcript states it

## Output Format
Respond with valid JSON only:
{
  "entities": [
    {
      "type": "person" | "organization" | "project" | "event",
      "name": "Entity Name",
      "context": "Quote or summary from the transcript mentioning this entity"
    }
  ]
}

If no entities are found, return: {"entities": []}"""


def render_transcript(transcript: Transcript) -> str | None:
    """
    Render a transcript as prompt text.

    Segments become `speaker: text` paragraphs; without segments the plain
    content is used. Long transcripts are cut at MAX_TRANSCRIPT_CHARS.

    Returns:
        Prompt text, or None when the transcript has nothing to read
    """
    if transcript.segments:
        body = "\n\n".join(f"{segment.speaker}: {segment.text}" for segment in transcript.segments)
    elif transcript.content:
        body = transcript.content
    else:
        return None

    text = f"Meeting: {transcript.title}\n\n{body}"
    if len(text) > MAX_TRANSCRIPT_CHARS:
        text = text[:MAX_TRANSCRIPT_CHARS] + TRUNCATION_MARKER
    return text


def parse_extraction(raw: str | None) -> list[CreateEntityMutation]:
    """
    Turn the model's answer into entity proposals.

    Tries a direct JSON parse, then the first embedded `{..."entities"...}`
    span. Items with an unknown type or no name are dropped, as are repeats
    of the same type and name.

    Returns:
        Proposals in answer order (never raises)
    """
    if not raw:
        return []

    payload = _load_json_object(raw)
    if payload is None:
        match = EMBEDDED_ENTITIES_PATTERN.search(raw)
        if match:
            payload = _load_json_object(match.group(0))
    if payload is None:
        logger.warning("Entity extraction answer is not JSON")
        return []

    items = payload.get("entities")
    if not isinstance(items, list):
        return []

    proposals: list[CreateEntityMutation] = []
    seen: set[tuple[str, str]] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").strip()
        context = item.get("context")
        try:
            proposal = CreateEntityMutation(
                entity_type=item.get("type"),
                name=name,
                properties={"context": context} if context else {},
            )
        except PydanticValidationError:
            logger.debug(f"Dropping extracted entity with type {item.get('type')!r}")
            continue

        key = (proposal.entity_type.value, name.lower())
        if not name or key in seen:
            continue
        seen.add(key)
        proposals.append(proposal)
    return proposals


def _load_json_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


class EntityExtractor:
    """Asks the LLM for the entities a transcript mentions."""

    def __init__(self, llm: LLMProvider, llm_config: LLMConfig | None = None):
        self.llm = llm
        self.llm_config = llm_config or LLMConfig()

    async def extract(self, transcript: Transcript) -> list[CreateEntityMutation]:
        """
        Propose entities for a transcript.

        Provider failures are logged and yield no proposals.

        Args:
            transcript: Transcript to read

        Returns:
            CreateEntityMutation proposals, possibly empty
        """
        text = render_transcript(transcript)
        if text is None:
            return []

        messages = [
            {"role": "system", "content": EXTRACTION_PROMPT},
            {"role": "user", "content": f"Extract entities from this transcript:\n\n{text}"},
        ]
        try:
            result = await self.llm.chat(
                messages,
                max_tokens=min(self.llm_config.max_tokens, 2048),
                temperature=self.llm_config.temperature,
            )
        except LLMError as e:
            logger.error(f"Entity extraction failed for transcript {transcript.id}: {e.message}")
            return []

        proposals = parse_extraction(result.content)
        logger.info(f"Extracted {len(proposals)} entities from transcript {transcript.id}")
        return proposals
