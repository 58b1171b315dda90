"""Cursor pagination helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    next: Optional[str] = None


async def paginate(fetch_page: Callable[[Optional[str]], Awaitable[Page[T]]]) -> AsyncIterator[T]:
    """Yield every item of every page, fetching the next page only once the current one is exhausted."""

    cursor: Optional[str] = None
    while True:
        page = await fetch_page(cursor)
        for item in page.items:
            yield item
        if not page.next:
            return
        cursor = page.next
