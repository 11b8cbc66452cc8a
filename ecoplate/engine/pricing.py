"""Supply/demand pricing for drops."""

from decimal import ROUND_HALF_UP, Decimal

from ecoplate.models.drop import Drop

ABUNDANT_SUPPLY = Decimal("0.5")
SCARCE_SUPPLY = Decimal("0.2")
HIGH_DEMAND = Decimal("0.7")


def calculate_price(
    *,
    total_boxes: int,
    remaining_boxes: int,
    reserved_boxes: int,
    price_min: Decimal,
    price_max: Decimal,
) -> Decimal:
    """
    Price one box from the drop's current supply and demand.

    Args:
        total_boxes: Boxes posted in the drop
        remaining_boxes: Boxes still on sale
        reserved_boxes: Boxes already claimed
        price_min: Floor price
        price_max: Ceiling price

    Returns:
        A price within ``[price_min, price_max]``
    """
    if total_boxes == 0:
        return price_min

    supply_ratio = Decimal(remaining_boxes) / Decimal(total_boxes)
    demand_ratio = Decimal(reserved_boxes) / Decimal(total_boxes)

    if supply_ratio > ABUNDANT_SUPPLY:
        return price_min
    if supply_ratio < SCARCE_SUPPLY and demand_ratio > HIGH_DEMAND:
        return price_max

    raw = price_min + (price_max - price_min) * (1 - supply_ratio) * demand_ratio
    rounded = raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(price_max, max(price_min, rounded))


def price_for(drop: Drop) -> Decimal:
    """Current price of a box in ``drop``."""
    return calculate_price(
        total_boxes=drop.total_boxes,
        remaining_boxes=drop.remaining_boxes,
        reserved_boxes=drop.reserved_boxes,
        price_min=drop.price_min,
        price_max=drop.price_max,
    )
