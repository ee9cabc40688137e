"""
Transcript models (evidence layer).

Transcripts are immutable once ingested; the only mutation is deletion.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TranscriptSegment(BaseModel):
    """One speaker turn, with offsets in seconds from the start of the recording."""

    start: float = Field(..., ge=0.0)
    end: float = Field(..., ge=0.0)
    speaker: str = ""
    text: str = ""


class Transcript(BaseModel):
    """Meeting recording transcript."""

    id: str = Field(..., description="Transcript ID (trn_xxx)")
    title: str
    content: str = Field(default="", description="Full transcript text")
    segments: list[TranscriptSegment] = Field(default_factory=list)
    meeting_platform: str | None = None
    participants: list[str] = Field(default_factory=list)
    duration_seconds: int | None = Field(default=None, ge=0)
    recorded_at: datetime = Field(default_factory=datetime.now)
    created_at: datetime = Field(default_factory=datetime.now)

    def speakers(self) -> list[str]:
        """
        Distinct speakers in order of first appearance.

        Returns:
            Speaker names
        """
        seen: list[str] = []
        for segment in self.segments:
            if segment.speaker and segment.speaker not in seen:
                seen.append(segment.speaker)
        return seen
