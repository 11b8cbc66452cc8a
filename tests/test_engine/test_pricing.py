"""Tests for supply/demand pricing."""

from decimal import Decimal

import pytest

from ecoplate.engine.pricing import calculate_price


def _price(total: int, remaining: int, reserved: int, low: str = "3", high: str = "5") -> Decimal:
    return calculate_price(
        total_boxes=total,
        remaining_boxes=remaining,
        reserved_boxes=reserved,
        price_min=Decimal(low),
        price_max=Decimal(high),
    )


@pytest.mark.parametrize("reserved", [0, 2, 4])
def test_abundant_supply_is_min_price(reserved: int) -> None:
    """More than half the boxes left always sells at the floor."""
    assert _price(10, 6, reserved) == Decimal("3")


def test_scarce_supply_high_demand_is_max_price() -> None:
    assert _price(10, 1, 9) == Decimal("5")


def test_scarce_supply_low_demand_interpolates() -> None:
    """Under 20% left but demand at 70% or below still interpolates."""
    # 3 + 2 * 0.9 * 0.1 = 3.18
    assert _price(10, 1, 1) == Decimal("3")


def test_mid_supply_interpolates_and_rounds() -> None:
    # 3 + 2 * 0.7 * 0.7 = 3.98
    assert _price(10, 3, 7) == Decimal("4")


def test_half_rounds_up() -> None:
    # 1 + 6 * 0.5 * 0.5 = 2.5
    assert _price(4, 2, 2, low="1", high="7") == Decimal("3")


def test_exactly_half_supply_is_not_abundant() -> None:
    # 1 + 9 * 0.5 * 0.5 = 3.25
    assert _price(10, 5, 5, low="1", high="10") == Decimal("3")


def test_empty_drop_is_min_price() -> None:
    assert _price(0, 0, 0) == Decimal("3")


def test_price_always_within_band() -> None:
    for remaining in range(0, 11):
        price = _price(10, remaining, 10 - remaining, low="2", high="9")
        assert Decimal("2") <= price <= Decimal("9")
