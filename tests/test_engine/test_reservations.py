"""Tests for the reservation lifecycle."""

import asyncio
from decimal import Decimal

import pytest

from ecoplate.engine import Engine
from ecoplate.errors import (
    DuplicateActiveReservationError,
    NotActiveError,
    NotFoundError,
    SoldOutError,
    ValidationError,
)
from ecoplate.models.account import UserAccountUpdate
from ecoplate.models.drop import Drop
from ecoplate.models.pickup_code import PickupCodeStatus
from ecoplate.models.reservation import (
    BoxStatus,
    CreateReservationRequest,
    PaymentMethod,
    ReservationConfirmation,
    ReservationStatus,
)


def _request(
    drop: Drop,
    session_id: str = "session-a",
    payment_method: PaymentMethod = PaymentMethod.PAY_AT_PICKUP,
    card_last4: str | None = None,
) -> CreateReservationRequest:
    return CreateReservationRequest(
        drop_id=drop.id,
        session_id=session_id,
        payment_method=payment_method,
        card_last4=card_last4,
    )


@pytest.mark.asyncio
async def test_reserve_last_box_then_sold_out(engine: Engine, single_box_drop: Drop) -> None:
    """A one-box drop can be reserved once; the next session finds it sold out."""
    confirmation = await engine.reservations.create_reservation(_request(single_box_drop))

    assert confirmation.reservation.status == ReservationStatus.RESERVED
    assert confirmation.drop.remaining_boxes == 0
    assert confirmation.drop.reserved_boxes == 1

    with pytest.raises(SoldOutError):
        await engine.reservations.create_reservation(
            _request(single_box_drop, session_id="session-b")
        )


@pytest.mark.asyncio
async def test_reservation_snapshot_and_code(engine: Engine, sample_drop: Drop) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))
    reservation = confirmation.reservation

    assert reservation.drop_location == sample_drop.location
    assert reservation.drop_location_detail == sample_drop.location_detail
    assert reservation.drop_window_start == sample_drop.window_start
    assert reservation.drop_window_end == sample_drop.window_end
    assert reservation.current_price == Decimal("3")
    assert len(reservation.pickup_code) == 6
    assert set(reservation.pickup_code) <= set("ABCDEFGHJKLMNPQRSTUVWXYZ23456789")

    record = await engine.codes.get(reservation.pickup_code)
    assert record.reservation_id == reservation.id
    assert record.status == PickupCodeStatus.VALID


@pytest.mark.asyncio
async def test_price_is_taken_before_decrement(engine: Engine, sample_drop: Drop) -> None:
    """The fifth box of five is priced on the drop with one box still left."""
    prices = []
    for i in range(5):
        confirmation = await engine.reservations.create_reservation(
            _request(sample_drop, session_id=f"session-{i}")
        )
        prices.append(confirmation.reservation.current_price)

    # remaining/reserved seen at each reservation: 5/0, 4/1, 3/2, 2/3, 1/4
    assert prices == [Decimal("3"), Decimal("3"), Decimal("3"), Decimal("4"), Decimal("4")]


@pytest.mark.asyncio
async def test_reserve_unknown_drop(engine: Engine) -> None:
    with pytest.raises(NotFoundError):
        await engine.reservations.create_reservation(
            CreateReservationRequest(
                drop_id="drop-missing",
                session_id="session-a",
                payment_method=PaymentMethod.PAY_AT_PICKUP,
            )
        )


@pytest.mark.asyncio
async def test_duplicate_active_reservation(engine: Engine, sample_drop: Drop) -> None:
    await engine.reservations.create_reservation(_request(sample_drop))

    with pytest.raises(DuplicateActiveReservationError):
        await engine.reservations.create_reservation(_request(sample_drop))

    drop = await engine.inventory.get_drop(sample_drop.id)
    assert drop.remaining_boxes == 4


@pytest.mark.asyncio
async def test_sold_out_is_checked_before_duplicate(engine: Engine, single_box_drop: Drop) -> None:
    await engine.reservations.create_reservation(_request(single_box_drop))

    with pytest.raises(SoldOutError):
        await engine.reservations.create_reservation(_request(single_box_drop))


@pytest.mark.asyncio
async def test_reserve_again_after_cancel(engine: Engine, sample_drop: Drop) -> None:
    first = await engine.reservations.create_reservation(_request(sample_drop))
    await engine.reservations.cancel_reservation(first.reservation.id)

    second = await engine.reservations.create_reservation(_request(sample_drop))

    assert second.reservation.id != first.reservation.id
    assert second.drop.remaining_boxes == 4


@pytest.mark.asyncio
async def test_concurrent_reservations_on_last_box(engine: Engine, single_box_drop: Drop) -> None:
    results = await asyncio.gather(
        engine.reservations.create_reservation(_request(single_box_drop, session_id="a")),
        engine.reservations.create_reservation(_request(single_box_drop, session_id="b")),
        return_exceptions=True,
    )

    assert sum(isinstance(r, ReservationConfirmation) for r in results) == 1
    assert sum(isinstance(r, SoldOutError) for r in results) == 1

    drop = await engine.inventory.get_drop(single_box_drop.id)
    assert (drop.remaining_boxes, drop.reserved_boxes) == (0, 1)
    assert len(await engine.reservations.list_reservations()) == 1


@pytest.mark.asyncio
async def test_credit_debited_and_refunded(engine: Engine, sample_drop: Drop) -> None:
    """Paying with a credit spends it; cancelling gives it back with the box."""
    await engine.accounts.update_user("session-a", UserAccountUpdate(credits_remaining=1))

    confirmation = await engine.reservations.create_reservation(
        _request(sample_drop, payment_method=PaymentMethod.CREDIT)
    )
    assert (await engine.accounts.get_user("session-a")).credits_remaining == 0

    cancelled = await engine.reservations.cancel_reservation(confirmation.reservation.id)

    assert cancelled.status == ReservationStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert (await engine.accounts.get_user("session-a")).credits_remaining == 1
    assert (await engine.inventory.get_drop(sample_drop.id)).remaining_boxes == 5


@pytest.mark.asyncio
async def test_credit_debit_floors_at_zero(engine: Engine, sample_drop: Drop) -> None:
    await engine.reservations.create_reservation(
        _request(sample_drop, payment_method=PaymentMethod.CREDIT)
    )

    assert (await engine.accounts.get_user("session-a")).credits_remaining == 0


@pytest.mark.asyncio
async def test_card_saved_on_first_card_reservation(
    engine: Engine, sample_drop: Drop, single_box_drop: Drop
) -> None:
    await engine.reservations.create_reservation(
        _request(sample_drop, payment_method=PaymentMethod.CARD, card_last4="4242")
    )
    await engine.reservations.create_reservation(
        _request(single_box_drop, payment_method=PaymentMethod.CARD, card_last4="1111")
    )

    account = await engine.accounts.get_user("session-a")
    assert account.has_card_saved is True
    assert account.card_last4 == "4242"


@pytest.mark.asyncio
async def test_cancel_expires_code(engine: Engine, sample_drop: Drop) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))
    await engine.reservations.cancel_reservation(confirmation.reservation.id)

    record = await engine.codes.get(confirmation.reservation.pickup_code)
    assert record.status == PickupCodeStatus.EXPIRED


@pytest.mark.asyncio
async def test_cancel_twice(engine: Engine, sample_drop: Drop) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))
    await engine.reservations.cancel_reservation(confirmation.reservation.id)

    with pytest.raises(NotActiveError):
        await engine.reservations.cancel_reservation(confirmation.reservation.id)

    assert (await engine.inventory.get_drop(sample_drop.id)).remaining_boxes == 5


@pytest.mark.asyncio
async def test_cancel_after_pickup(engine: Engine, sample_drop: Drop) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))
    await engine.reservations.redeem(confirmation.reservation.pickup_code)

    with pytest.raises(NotActiveError):
        await engine.reservations.cancel_reservation(confirmation.reservation.id)


@pytest.mark.asyncio
async def test_cancel_unknown_reservation(engine: Engine) -> None:
    with pytest.raises(NotFoundError):
        await engine.reservations.cancel_reservation("res-missing")


@pytest.mark.asyncio
async def test_no_show_keeps_box_out_of_inventory(engine: Engine, sample_drop: Drop) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))

    missed = await engine.reservations.mark_no_show(
        confirmation.reservation.id, BoxStatus.DONATED
    )

    assert missed.status == ReservationStatus.NO_SHOW
    assert missed.box_status == BoxStatus.DONATED

    drop = await engine.inventory.get_drop(sample_drop.id)
    assert (drop.remaining_boxes, drop.reserved_boxes) == (4, 1)

    account = await engine.accounts.get_user("session-a")
    assert account.no_show_count == 1

    record = await engine.codes.get(confirmation.reservation.pickup_code)
    assert record.status == PickupCodeStatus.EXPIRED


@pytest.mark.asyncio
async def test_no_show_on_cancelled_reservation(engine: Engine, sample_drop: Drop) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))
    await engine.reservations.cancel_reservation(confirmation.reservation.id)

    with pytest.raises(NotActiveError):
        await engine.reservations.mark_no_show(confirmation.reservation.id)


@pytest.mark.asyncio
async def test_rate_reservation(engine: Engine, sample_drop: Drop) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))
    await engine.reservations.redeem(confirmation.reservation.pickup_code)

    rated = await engine.reservations.rate_reservation(
        confirmation.reservation.id, "session-a", 4
    )

    assert rated.rating == 4
    assert rated.rated_at is not None
    assert (await engine.reservations.get_reservation(rated.id)).rating == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6])
async def test_rate_out_of_range(engine: Engine, sample_drop: Drop, rating: int) -> None:
    confirmation = await engine.reservations.create_reservation(_request(sample_drop))

    with pytest.raises(ValidationError):
        await engine.reservations.rate_reservation(
            confirmation.reservation.id, "session-a", rating
        )

    assert (await engine.reservations.get_reservation(confirmation.reservation.id)).rating is None


@pytest.mark.asyncio
async def test_list_reservations_by_session(engine: Engine, sample_drop: Drop) -> None:
    await engine.reservations.create_reservation(_request(sample_drop, session_id="a"))
    await engine.reservations.create_reservation(_request(sample_drop, session_id="b"))

    assert len(await engine.reservations.list_reservations()) == 2
    mine = await engine.reservations.list_reservations("a")
    assert [r.session_id for r in mine] == ["a"]
    assert await engine.reservations.list_reservations("nobody") == []


@pytest.mark.asyncio
async def test_concurrent_reservations_same_session(engine: Engine, sample_drop: Drop) -> None:
    """One session racing itself on a roomy drop still gets a single box."""
    results = await asyncio.gather(
        engine.reservations.create_reservation(_request(sample_drop)),
        engine.reservations.create_reservation(_request(sample_drop)),
        return_exceptions=True,
    )

    assert sum(isinstance(r, ReservationConfirmation) for r in results) == 1
    assert sum(isinstance(r, DuplicateActiveReservationError) for r in results) == 1

    drop = await engine.inventory.get_drop(sample_drop.id)
    assert (drop.remaining_boxes, drop.reserved_boxes) == (4, 1)
    assert len(await engine.reservations.list_reservations("session-a")) == 1
