from __future__ import annotations

import asyncio

from granola_client.pagination import Page, paginate


def test_paginate_follows_cursor_lazily():
    pages = {
        None: Page(items=[1, 2], next="c1"),
        "c1": Page(items=[], next="c2"),
        "c2": Page(items=[3], next=None),
    }
    requested = []

    async def fetch_page(cursor):
        requested.append(cursor)
        return pages[cursor]

    async def run():
        iterator = paginate(fetch_page)
        first = await iterator.__anext__()
        after_first = list(requested)
        rest = [item async for item in iterator]
        return first, after_first, rest

    first, after_first, rest = asyncio.run(run())

    assert first == 1
    assert after_first == [None]
    assert rest == [2, 3]
    assert requested == [None, "c1", "c2"]


def test_paginate_stops_on_empty_cursor():
    calls = []

    async def fetch_page(cursor):
        calls.append(cursor)
        return Page(items=["only"], next="")

    async def run():
        return [item async for item in paginate(fetch_page)]

    assert asyncio.run(run()) == ["only"]
    assert calls == [None]
