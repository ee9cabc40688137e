"""
Transcript Store - read-mostly evidence records.
"""

from datetime import datetime

from brain.core.knowledge_store.base import KnowledgeStore
from brain.models.transcript import Transcript, TranscriptSegment
from brain.utils.id_generator import generate_transcript_id
from brain.utils.logger import get_logger

logger = get_logger(__name__)


class TranscriptStore:
    """Meeting transcripts: created once, read many times, optionally deleted."""

    def __init__(self, store: KnowledgeStore | None = None):
        self.store = store

        self.transcripts: dict[str, Transcript] = {}
        self.current_transcript_id: str | None = None
        self.is_initialized = False

    async def initialize(self) -> None:
        if self.is_initialized:
            return

        if self.store is not None:
            try:
                for transcript in await self.store.list_transcripts():
                    self.transcripts[transcript.id] = transcript
            except Exception as e:
                logger.error(f"Failed to load transcripts: {e}")

        self.is_initialized = True
        logger.info(f"Transcript store initialized with {len(self.transcripts)} transcripts")

    def get_transcript(self, transcript_id: str) -> Transcript | None:
        return self.transcripts.get(transcript_id)

    def get_all_transcripts(self) -> list[Transcript]:
        """All transcripts, most recently recorded first."""
        return sorted(
            self.transcripts.values(), key=lambda transcript: transcript.recorded_at, reverse=True
        )

    def get_current_transcript(self) -> Transcript | None:
        if self.current_transcript_id is None:
            return None
        return self.transcripts.get(self.current_transcript_id)

    def set_current_transcript(self, transcript_id: str | None) -> None:
        self.current_transcript_id = transcript_id

    async def create_transcript(
        self,
        title: str,
        content: str = "",
        segments: list[TranscriptSegment] | None = None,
        meeting_platform: str | None = None,
        participants: list[str] | None = None,
        duration_seconds: int | None = None,
        recorded_at: datetime | None = None,
    ) -> str:
        """
        Store a new transcript.

        Participants default to the distinct segment speakers.

        Returns:
            New transcript ID
        """
        transcript = Transcript(
            id=generate_transcript_id(),
            title=title,
            content=content,
            segments=segments or [],
            meeting_platform=meeting_platform,
            participants=participants or [],
            duration_seconds=duration_seconds,
            recorded_at=recorded_at or datetime.now(),
        )
        if not transcript.participants:
            transcript.participants = transcript.speakers()

        self.transcripts[transcript.id] = transcript
        logger.info(f"Created transcript {transcript.id}")

        if self.store is not None:
            try:
                await self.store.create_transcript(transcript)
            except Exception as e:
                logger.error(f"Persistence failed for transcript {transcript.id}: {e}")

        return transcript.id

    async def delete_transcript(self, transcript_id: str) -> None:
        """Delete a transcript. Missing IDs are ignored."""
        if self.transcripts.pop(transcript_id, None) is None:
            return

        if self.current_transcript_id == transcript_id:
            self.current_transcript_id = None

        if self.store is not None:
            try:
                await self.store.delete_transcript(transcript_id)
            except Exception as e:
                logger.error(f"Persistence failed deleting transcript {transcript_id}: {e}")
