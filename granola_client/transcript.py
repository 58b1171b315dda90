"""Transcript post-processing: cross-source deduplication and speaker smoothing.

Transcripts are captured twice, once from the local microphone and once from
system audio, so the same utterance frequently shows up as two segments a few
hundred milliseconds apart. ``deduplicate_segments`` collapses those pairs and
``improve_speaker_assignment`` smooths the source-based speaker labels with a
handful of neighbour-to-neighbour heuristics.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Union

from .client import GranolaClient
from .export import write_markdown
from .models import (
    SKIP,
    SOURCE_MICROPHONE,
    SOURCE_SYSTEM,
    SPEAKER_THEM,
    TranscriptSegmentWithSpeaker,
)

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.68
DEFAULT_TIME_WINDOW_SECONDS = 4.5

# Empirically tuned; revisit if speaker accuracy regresses on new recordings.
NEAR_EXACT_SIMILARITY = 0.95
CONTAINMENT_BONUS = 0.2
RESIDUAL_DUPLICATE_SIMILARITY = 0.65
SHORT_CONTINUATION_CHARS = 8
SHORT_CONTINUATION_GAP = 0.5
LONG_PAUSE_GAP = 2.0
RUN_CONTINUATION_GAP = 1.5
SYSTEM_SHORT_CHARS = 15
SYSTEM_SHORT_GAP = 1.0
SYSTEM_THEM_GAP = 1.2


def longest_common_subsequence(s1: str, s2: str) -> int:
    if not s1 or not s2:
        return 0
    previous = [0] * (len(s2) + 1)
    for ch1 in s1:
        current = [0] * (len(s2) + 1)
        for j, ch2 in enumerate(s2, start=1):
            if ch1 == ch2:
                current[j] = previous[j - 1] + 1
            else:
                current[j] = max(previous[j], current[j - 1])
        previous = current
    return previous[-1]


def text_similarity(text1: str, text2: str) -> float:
    """Case-insensitive similarity in ``[0, 1]``.

    Containment ("Hello" inside "Hello there") gets a bonus so that prefix and
    suffix fragments of one utterance are treated as duplicates.
    """
    s1 = (text1 or "").lower()
    s2 = (text2 or "").lower()
    if not s1 and not s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    shorter, longer = sorted((len(s1), len(s2)))
    if s1 in s2 or s2 in s1:
        return min(1.0, shorter / longer + CONTAINMENT_BONUS)
    return min(1.0, longest_common_subsequence(s1, s2) / longer)


def _sorted_by_start(segments: Sequence[TranscriptSegmentWithSpeaker]) -> List[TranscriptSegmentWithSpeaker]:
    return sorted(segments, key=lambda segment: segment.start_time)


def _gap_seconds(prev: TranscriptSegmentWithSpeaker, curr: TranscriptSegmentWithSpeaker) -> float:
    return (curr.start_time - prev.end_time).total_seconds()


def deduplicate_segments(
    segments: Sequence[TranscriptSegmentWithSpeaker],
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    time_window_seconds: float = DEFAULT_TIME_WINDOW_SECONDS,
) -> List[TranscriptSegmentWithSpeaker]:
    """Drop segments that repeat an utterance already captured from another source."""
    if not segments:
        return []

    ordered = _sorted_by_start(segments)
    removed = set()

    for i, segment in enumerate(ordered):
        if i in removed:
            continue
        for j in range(i + 1, len(ordered)):
            if j in removed:
                continue
            other = ordered[j]
            if (other.start_time - segment.start_time).total_seconds() > time_window_seconds:
                break

            similarity = text_similarity(segment.text, other.text)
            if similarity < similarity_threshold:
                continue

            if segment.source == SOURCE_MICROPHONE and other.source == SOURCE_SYSTEM:
                removed.add(j)
            elif segment.source == SOURCE_SYSTEM and other.source == SOURCE_MICROPHONE:
                removed.add(i)
                break
            elif similarity > NEAR_EXACT_SIMILARITY or len(segment.text) >= len(other.text):
                removed.add(j)
            else:
                removed.add(i)
                break

    if removed:
        logger.info("Removed %d duplicate transcript segments", len(removed))
    return [segment for index, segment in enumerate(ordered) if index not in removed]


def improve_speaker_assignment(
    segments: Sequence[TranscriptSegmentWithSpeaker],
) -> List[TranscriptSegmentWithSpeaker]:
    """Smooth speaker labels in place and drop residual duplicates.

    Each segment is compared with its predecessor; the first rule that applies
    wins and the remaining rules are skipped for that pair.
    """
    if not segments:
        return []

    ordered = _sorted_by_start(segments)

    for i in range(1, len(ordered)):
        prev = ordered[i - 1]
        curr = ordered[i]
        gap = _gap_seconds(prev, curr)

        # a dropped duplicate never lends its label to a neighbour
        if prev.speaker == SKIP:
            continue

        if len(curr.text) < SHORT_CONTINUATION_CHARS and gap < SHORT_CONTINUATION_GAP:
            curr.speaker = prev.speaker
            curr.confidence = 0.8
            continue

        if prev.source != curr.source:
            if text_similarity(prev.text, curr.text) <= RESIDUAL_DUPLICATE_SIMILARITY:
                # different capture paths, trust the source label
                continue
            if prev.source == SOURCE_MICROPHONE and curr.source == SOURCE_SYSTEM:
                curr.speaker = SKIP
                continue
            if prev.source == SOURCE_SYSTEM and curr.source == SOURCE_MICROPHONE:
                prev.speaker = SKIP
                continue

        if gap > LONG_PAUSE_GAP:
            continue

        if i >= 2 and ordered[i - 2].speaker == prev.speaker and gap < RUN_CONTINUATION_GAP:
            curr.speaker = prev.speaker
            curr.confidence = 0.75
            continue

        if prev.source == SOURCE_SYSTEM and curr.source == SOURCE_SYSTEM:
            if len(curr.text) < SYSTEM_SHORT_CHARS and gap < SYSTEM_SHORT_GAP:
                curr.speaker = prev.speaker
                curr.confidence = 0.7
            elif prev.speaker == SPEAKER_THEM and gap < SYSTEM_THEM_GAP:
                curr.speaker = SPEAKER_THEM

    return [segment for segment in ordered if segment.speaker != SKIP]


class TranscriptClient(GranolaClient):
    """Client adding speaker attribution, deduplication and markdown export."""

    async def get_document_transcript_with_speakers(
        self,
        document_id: str,
        deduplicate: bool = True,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        time_window_seconds: float = DEFAULT_TIME_WINDOW_SECONDS,
    ) -> List[TranscriptSegmentWithSpeaker]:
        raw_segments = await self.get_document_transcript(document_id)
        segments = _sorted_by_start(
            [TranscriptSegmentWithSpeaker.from_segment(segment, document_id) for segment in raw_segments]
        )
        if not deduplicate:
            return segments

        deduplicated = deduplicate_segments(segments, similarity_threshold, time_window_seconds)
        refined = improve_speaker_assignment(deduplicated)
        logger.info(
            "Transcript %s: %d segments, %d after deduplication and refinement",
            document_id,
            len(segments),
            len(refined),
        )
        return refined

    async def export_transcript_markdown(
        self,
        document_id: str,
        output_path: Union[str, Path],
        deduplicate: bool = True,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        time_window_seconds: float = DEFAULT_TIME_WINDOW_SECONDS,
    ) -> Path:
        segments = await self.get_document_transcript_with_speakers(
            document_id,
            deduplicate=deduplicate,
            similarity_threshold=similarity_threshold,
            time_window_seconds=time_window_seconds,
        )
        return write_markdown(segments, output_path)
