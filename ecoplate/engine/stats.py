"""Running site-wide statistics, maintained incrementally from engine events."""

from decimal import ROUND_HALF_UP, Decimal

from ecoplate.config import Settings, get_settings
from ecoplate.models.drop import Drop, Location
from ecoplate.models.reservation import Reservation
from ecoplate.models.stats import DailyRollup, LocationCap, LocationCapUpdate, StatsSnapshot
from ecoplate.state import keys
from ecoplate.state.manager import StateManager, Transaction
from ecoplate.utils.clock import WEEKDAY_LABELS, weekday_label
from ecoplate.utils.logging import get_logger

logger = get_logger(__name__)

PICKUP_RATE_THRESHOLD = 85


def _round_half_up(value: Decimal, places: str) -> Decimal:
    return value.quantize(Decimal(places), rounding=ROUND_HALF_UP)


def pickup_rate(picked_up: int, posted: int) -> int:
    """Whole-percent share of posted boxes that were picked up."""
    if posted <= 0:
        return 0
    return int(_round_half_up(Decimal(picked_up) * 100 / Decimal(posted), "1"))


def no_show_rate(no_shows: int, reservations: int) -> float:
    """Percent of reservations that ended as no-shows, one decimal place."""
    if reservations <= 0:
        return 0.0
    return float(_round_half_up(Decimal(no_shows) * 100 / Decimal(reservations), "0.1"))


def next_average(previous_avg: float, previous_count: int, rating: int) -> float:
    """
    Fold one rating into a running mean, rounded to one decimal place.

    ``previous_count`` is the pickup count, not a dedicated rating count, so the
    mean drifts when pickups go unrated.
    """
    if previous_count == 0:
        return float(rating)
    total = Decimal(str(previous_avg)) * previous_count + rating
    return float(_round_half_up(total / (previous_count + 1), "0.1"))


def _int(data: dict[str, str], field: str) -> int:
    return int(data.get(field) or 0)


class StatsAggregator:
    """Consumes drop and reservation events into running totals."""

    def __init__(self, state: StateManager, settings: Settings | None = None):
        self.state = state
        self.settings = settings or get_settings()

    def _default_cap(self, location: Location) -> int:
        return self.settings.default_location_caps.get(location.value, 30)

    def _location_cap(self, location: Location, data: dict[str, str]) -> LocationCap:
        posted = _int(data, "boxes_posted")
        picked_up = _int(data, "boxes_picked_up")
        rate = pickup_rate(picked_up, posted)
        above_threshold = posted > 0 and picked_up * 100 >= PICKUP_RATE_THRESHOLD * posted
        weeks = _int(data, "consecutive_weeks_above_85")

        return LocationCap(
            location=location,
            current_cap=int(data.get("current_cap") or self._default_cap(location)),
            consecutive_weeks_above_85=weeks if above_threshold else 0,
            boxes_posted=posted,
            boxes_picked_up=picked_up,
            pickup_rate=rate,
        )

    # Reads inside a transaction

    async def read_location_cap(self, tx: Transaction, location: Location) -> LocationCap:
        key = keys.stats_location_key(location.value)
        await tx.watch(key)
        return self._location_cap(location, await tx.hgetall(key))

    async def read_rating_state(self, tx: Transaction) -> tuple[float, int]:
        """Return the current average rating and the pickup count it is based on."""
        await tx.watch(keys.STATS_GLOBAL)
        data = await tx.hgetall(keys.STATS_GLOBAL)
        return float(data.get("avg_rating") or 0), _int(data, "total_boxes_picked_up")

    # Event recorders, queued inside the caller's transaction

    def record_drop(self, tx: Transaction, drop: Drop) -> None:
        tx.hincrby(keys.STATS_GLOBAL, "total_drops", 1)
        tx.hincrby(keys.STATS_GLOBAL, "total_boxes_posted", drop.total_boxes)
        tx.hincrby(keys.stats_day_key(weekday_label(drop.date)), "posted", drop.total_boxes)
        tx.hincrby(keys.stats_location_key(drop.location.value), "boxes_posted", drop.total_boxes)

    def record_reservation(self, tx: Transaction) -> None:
        tx.hincrby(keys.STATS_GLOBAL, "total_reservations", 1)

    def record_pickup(self, tx: Transaction, reservation: Reservation) -> None:
        tx.hincrby(keys.STATS_GLOBAL, "total_boxes_picked_up", 1)
        tx.hincrby(keys.stats_day_key(weekday_label(reservation.created_at.date())), "picked_up", 1)
        tx.hincrby(
            keys.stats_location_key(reservation.drop_location.value), "boxes_picked_up", 1
        )

    def record_no_show(self, tx: Transaction, reservation: Reservation) -> None:
        tx.hincrby(keys.STATS_GLOBAL, "total_no_shows", 1)
        tx.hincrby(keys.stats_day_key(weekday_label(reservation.created_at.date())), "no_shows", 1)

    def record_rating(
        self,
        tx: Transaction,
        rating: int,
        previous_avg: float,
        previous_count: int,
    ) -> float:
        avg = next_average(previous_avg, previous_count, rating)
        tx.hset(keys.STATS_GLOBAL, {"avg_rating": str(avg)})
        return avg

    def record_weeks_above_85(self, tx: Transaction, location: Location, weeks: int) -> None:
        tx.hset(keys.stats_location_key(location.value), {"consecutive_weeks_above_85": weeks})

    # Standalone operations

    async def update_location_cap(
        self,
        location: Location,
        update: LocationCapUpdate,
    ) -> LocationCap:
        """Store externally maintained cap inputs for a location."""
        mapping = update.model_dump(exclude_none=True)
        key = keys.stats_location_key(location.value)

        if mapping:
            await self.state.hset(key, mapping)
            logger.info("location_cap_updated", location=location.value, **mapping)

        return self._location_cap(location, await self.state.hgetall(key))

    async def snapshot(self) -> StatsSnapshot:
        """Read the current aggregate. Cost does not grow with history."""
        totals = await self.state.hgetall(keys.STATS_GLOBAL)

        posted = _int(totals, "total_boxes_posted")
        picked_up = _int(totals, "total_boxes_picked_up")
        reservations = _int(totals, "total_reservations")
        no_shows = _int(totals, "total_no_shows")

        recent_drops = []
        for label in WEEKDAY_LABELS:
            data = await self.state.hgetall(keys.stats_day_key(label))
            if data:
                recent_drops.append(
                    DailyRollup(
                        date=label,
                        posted=_int(data, "posted"),
                        picked_up=_int(data, "picked_up"),
                        no_shows=_int(data, "no_shows"),
                    )
                )

        location_caps = [
            self._location_cap(
                location, await self.state.hgetall(keys.stats_location_key(location.value))
            )
            for location in Location
        ]

        return StatsSnapshot(
            total_drops=_int(totals, "total_drops"),
            total_boxes_posted=posted,
            total_boxes_picked_up=picked_up,
            total_reservations=reservations,
            total_no_shows=no_shows,
            pickup_rate=pickup_rate(picked_up, posted),
            no_show_rate=no_show_rate(no_shows, reservations),
            avg_rating=float(totals.get("avg_rating") or 0),
            location_caps=location_caps,
            recent_drops=recent_drops,
        )
