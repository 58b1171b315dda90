from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from granola_client.models import TranscriptSegmentWithSpeaker  # noqa: E402

BASE_TIME = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


@pytest.fixture
def make_segment() -> Callable[..., TranscriptSegmentWithSpeaker]:
    """Build a speaker segment from offsets in seconds relative to a fixed start."""

    def _make(
        text: str,
        start: float,
        end: float,
        source: str = "microphone",
        speaker: str = "Me",
    ) -> TranscriptSegmentWithSpeaker:
        start_time = BASE_TIME + timedelta(seconds=start)
        end_time = BASE_TIME + timedelta(seconds=end)
        return TranscriptSegmentWithSpeaker(
            text=text,
            start_timestamp=_iso(start_time),
            end_timestamp=_iso(end_time),
            source=source,
            speaker=speaker,
            start_time=start_time,
            end_time=end_time,
            confidence=1.0,
        )

    return _make


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: List[float]):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def recorder() -> List[httpx.Request]:
    return []


@pytest.fixture
def mock_transport(recorder: List[httpx.Request]):
    """Wrap a handler in ``httpx.MockTransport`` and remember every request it sees."""

    def _build(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
        def _record(request: httpx.Request) -> httpx.Response:
            recorder.append(request)
            return handler(request)

        return httpx.MockTransport(_record)

    return _build
