"""Shared models for transcripts, document metadata and panels."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SOURCE_MICROPHONE = "microphone"
SOURCE_SYSTEM = "system"

SPEAKER_ME = "Me"
SPEAKER_THEM = "Them"
SPEAKER_UNKNOWN = "Unknown"
SKIP = "SKIP"


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 timestamp, raising ``ValueError`` instead of guessing."""
    if not value:
        raise ValueError("missing transcript timestamp")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        # offset-less timestamps are UTC
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def speaker_for_source(source: Optional[str]) -> str:
    if source == SOURCE_MICROPHONE:
        return SPEAKER_ME
    if source == SOURCE_SYSTEM:
        return SPEAKER_THEM
    return SPEAKER_UNKNOWN


class TranscriptSegment(BaseModel):
    """One transcript segment as returned by the API."""

    model_config = ConfigDict(frozen=True, extra="allow")

    text: str = ""
    start_timestamp: str
    end_timestamp: str
    source: Optional[str] = None
    document_id: Optional[str] = None


@dataclass(slots=True)
class TranscriptSegmentWithSpeaker:
    """Transcript segment with parsed times and a speaker guess."""

    text: str
    start_timestamp: str
    end_timestamp: str
    source: str
    speaker: str
    start_time: datetime
    end_time: datetime
    confidence: float = 1.0
    document_id: Optional[str] = None

    @classmethod
    def from_segment(
        cls, segment: TranscriptSegment, document_id: Optional[str] = None
    ) -> "TranscriptSegmentWithSpeaker":
        source = segment.source or ""
        return cls(
            text=segment.text or "",
            start_timestamp=segment.start_timestamp,
            end_timestamp=segment.end_timestamp,
            source=source,
            speaker=speaker_for_source(source),
            start_time=parse_timestamp(segment.start_timestamp),
            end_time=parse_timestamp(segment.end_timestamp),
            confidence=1.0,
            document_id=segment.document_id or document_id,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "text": self.text,
            "start_timestamp": self.start_timestamp,
            "end_timestamp": self.end_timestamp,
            "source": self.source,
            "speaker": self.speaker,
            "confidence": self.confidence,
        }
        if self.document_id is not None:
            payload["document_id"] = self.document_id
        return payload


class Person(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class DocumentMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    creator: Optional[Person] = None
    attendees: List[Person] = Field(default_factory=list)


class PanelGeneratedLine(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str = ""
    matches: bool = False


class DocumentPanel(BaseModel):
    """Panel attached to a document (summary, action items, ...)."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    document_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    template_slug: Optional[str] = None
    deleted_at: Optional[str] = None
    content: Optional[Dict[str, Any]] = None
    original_content: Optional[str] = None
    generated_lines: Optional[List[PanelGeneratedLine]] = None
