"""Tests for no-show detection."""

from datetime import datetime

import pytest

from ecoplate.engine import Engine
from ecoplate.models.account import UserAccountUpdate
from ecoplate.models.drop import Drop
from ecoplate.models.reservation import (
    BoxStatus,
    CreateReservationRequest,
    PaymentMethod,
    Reservation,
)

AFTER_WINDOW = datetime(2026, 10, 17, 21, 0)


async def _reserve(engine: Engine, drop: Drop, session_id: str) -> Reservation:
    confirmation = await engine.reservations.create_reservation(
        CreateReservationRequest(
            drop_id=drop.id,
            session_id=session_id,
            payment_method=PaymentMethod.PAY_AT_PICKUP,
        )
    )
    return confirmation.reservation


@pytest.mark.asyncio
async def test_nothing_listed_before_window_ends(engine: Engine, sample_drop: Drop) -> None:
    await _reserve(engine, sample_drop, "session-a")

    assert await engine.no_shows.list_no_shows() == []


@pytest.mark.asyncio
async def test_unclaimed_reservation_listed_after_window(
    engine: Engine, sample_drop: Drop, clock
) -> None:
    reservation = await _reserve(engine, sample_drop, "session-a")
    clock.now = AFTER_WINDOW

    entries = await engine.no_shows.list_no_shows()

    assert len(entries) == 1
    entry = entries[0]
    assert entry.reservation_id == reservation.id
    assert entry.code == reservation.pickup_code
    assert entry.time == "8:30 PM"
    assert entry.repeat_offender is False
    assert entry.already_marked is False
    assert entry.box_status is None


@pytest.mark.asyncio
async def test_listing_does_not_change_state(engine: Engine, sample_drop: Drop, clock) -> None:
    reservation = await _reserve(engine, sample_drop, "session-a")
    clock.now = AFTER_WINDOW

    await engine.no_shows.list_no_shows()

    stored = await engine.reservations.get_reservation(reservation.id)
    assert stored.is_active
    assert (await engine.accounts.get_user("session-a")).no_show_count == 0


@pytest.mark.asyncio
async def test_picked_up_and_cancelled_are_excluded(
    engine: Engine, sample_drop: Drop, clock
) -> None:
    picked = await _reserve(engine, sample_drop, "session-a")
    cancelled = await _reserve(engine, sample_drop, "session-b")
    await engine.reservations.redeem(picked.pickup_code)
    await engine.reservations.cancel_reservation(cancelled.id)
    clock.now = AFTER_WINDOW

    assert await engine.no_shows.list_no_shows() == []


@pytest.mark.asyncio
async def test_marked_no_show_stays_listed(engine: Engine, sample_drop: Drop) -> None:
    reservation = await _reserve(engine, sample_drop, "session-a")
    await engine.reservations.mark_no_show(reservation.id, BoxStatus.DISPOSED)

    entries = await engine.no_shows.list_no_shows()

    assert len(entries) == 1
    assert entries[0].already_marked is True
    assert entries[0].box_status == BoxStatus.DISPOSED


@pytest.mark.asyncio
async def test_repeat_offender_flag(engine: Engine, sample_drop: Drop, clock) -> None:
    await engine.accounts.update_user("session-a", UserAccountUpdate(no_show_count=2))
    await _reserve(engine, sample_drop, "session-a")
    await _reserve(engine, sample_drop, "session-b")
    clock.now = AFTER_WINDOW

    flags = {e.session_id: e.repeat_offender for e in await engine.no_shows.list_no_shows()}

    assert flags == {"session-a": True, "session-b": False}
