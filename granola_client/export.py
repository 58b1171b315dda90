"""Markdown rendering of speaker-attributed transcripts."""
from __future__ import annotations

import logging
from io import StringIO
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .models import TranscriptSegmentWithSpeaker

logger = logging.getLogger(__name__)


def _write_block(buffer: StringIO, speaker: str, lines: List[str]) -> None:
    buffer.write(f"{speaker}:  \n")
    for line in lines:
        buffer.write(f"{line}  \n")


def render_markdown(segments: Iterable[TranscriptSegmentWithSpeaker]) -> str:
    """Group consecutive segments of one speaker under a single ``Speaker:`` heading.

    Every line ends with two spaces so markdown renders a hard line break.
    """
    buffer = StringIO()
    buffer.write(" \n")
    current_speaker: Optional[str] = None
    current_lines: List[str] = []
    for segment in segments:
        if current_speaker is not None and segment.speaker != current_speaker:
            _write_block(buffer, current_speaker, current_lines)
            buffer.write("\n")
            current_lines = []
        current_speaker = segment.speaker
        current_lines.append(segment.text or "")
    if current_speaker is not None and current_lines:
        _write_block(buffer, current_speaker, current_lines)
    return buffer.getvalue()


def write_markdown(segments: Iterable[TranscriptSegmentWithSpeaker], output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        handle.write(render_markdown(segments))
    logger.info("Transcript exported to %s", path)
    return path
