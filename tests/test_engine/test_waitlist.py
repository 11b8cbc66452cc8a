"""Tests for the waitlist."""

import pytest

from ecoplate.engine import Engine
from ecoplate.errors import NotFoundError


@pytest.mark.asyncio
async def test_join_is_idempotent(engine: Engine) -> None:
    first = await engine.waitlist.join("drop-1", "session-a")
    second = await engine.waitlist.join("drop-1", "session-a")

    assert first.success is True
    assert first.already_on_waitlist is False
    assert second.success is False
    assert second.already_on_waitlist is True
    assert len(await engine.waitlist.list_entries("drop-1")) == 1


@pytest.mark.asyncio
async def test_entries_are_per_drop(engine: Engine) -> None:
    await engine.waitlist.join("drop-1", "session-a")
    await engine.waitlist.join("drop-1", "session-b")
    await engine.waitlist.join("drop-2", "session-a")

    entries = await engine.waitlist.list_entries("drop-1")

    assert sorted(e.session_id for e in entries) == ["session-a", "session-b"]
    assert all(not e.notified for e in entries)
    assert await engine.waitlist.list_entries("drop-3") == []


@pytest.mark.asyncio
async def test_mark_notified(engine: Engine) -> None:
    await engine.waitlist.join("drop-1", "session-a")

    entry = await engine.waitlist.mark_notified("drop-1", "session-a")

    assert entry.notified is True
    [stored] = await engine.waitlist.list_entries("drop-1")
    assert stored.notified is True


@pytest.mark.asyncio
async def test_mark_notified_unknown_entry(engine: Engine) -> None:
    with pytest.raises(NotFoundError):
        await engine.waitlist.mark_notified("drop-1", "session-a")
