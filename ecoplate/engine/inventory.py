"""Inventory store: drops and their box counters."""

from uuid import uuid4

from ecoplate.config import Settings, get_settings
from ecoplate.engine.stats import StatsAggregator
from ecoplate.errors import NotFoundError, SoldOutError, ValidationError
from ecoplate.models.drop import CreateDropRequest, Drop
from ecoplate.state import keys
from ecoplate.state.manager import StateManager, Transaction
from ecoplate.utils.clock import Clock, local_now
from ecoplate.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryStore:
    """
    Owns Drop records and the capacity invariant.

    Every counter change runs inside a transaction watching the drop's key, so
    concurrent reservations and cancellations against one drop serialize.
    """

    def __init__(
        self,
        state: StateManager,
        stats: StatsAggregator,
        clock: Clock = local_now,
        settings: Settings | None = None,
    ):
        self.state = state
        self.stats = stats
        self.clock = clock
        self.settings = settings or get_settings()

    def with_status(self, drop: Drop) -> Drop:
        return drop.model_copy(update={"status": drop.status_at(self.clock())})

    def _dump(self, drop: Drop) -> dict:
        # Status is derived on read, never stored
        return drop.model_dump(mode="json", exclude={"status"})

    async def read(self, tx: Transaction, drop_id: str) -> Drop:
        """Load a drop inside a transaction, watching its key."""
        key = keys.drop_key(drop_id)
        await tx.watch(key)
        data = await tx.get(key)

        if not data:
            raise NotFoundError(f"Drop {drop_id} not found")

        return Drop(**data)

    def stage(self, tx: Transaction, drop: Drop) -> None:
        """Queue a write of the drop's counters."""
        tx.set(keys.drop_key(drop.id), self._dump(drop))

    def take_box(self, drop: Drop) -> Drop:
        if drop.is_sold_out:
            raise SoldOutError(drop.id)
        return drop.take_box()

    def return_box(self, drop: Drop) -> Drop:
        if drop.reserved_boxes <= 0:
            raise ValidationError(f"Drop {drop.id} has no reserved boxes to return")
        return drop.return_box()

    async def create_drop(self, request: CreateDropRequest) -> Drop:
        """
        Post a new drop with full capacity.

        Args:
            request: Validated drop parameters

        Returns:
            The stored drop with its derived status
        """
        now = self.clock()
        drop_id = f"drop-{uuid4().hex[:12]}"

        async def _create(tx: Transaction) -> Drop:
            cap = await self.stats.read_location_cap(tx, request.location)
            daily_cap = request.daily_cap or cap.current_cap

            if request.boxes > daily_cap:
                raise ValidationError(f"Maximum is {daily_cap} boxes for this location")

            drop = Drop(
                id=drop_id,
                location=request.location,
                location_detail=request.location_detail
                or f"{request.location.value} pickup area",
                date=request.date or now.date(),
                window_start=request.window_start,
                window_end=request.window_end,
                total_boxes=request.boxes,
                remaining_boxes=request.boxes,
                reserved_boxes=0,
                price_min=request.price_min,
                price_max=request.price_max,
                description=request.description or self.settings.default_drop_description,
                image_ref=request.image_ref or "",
                daily_cap=daily_cap,
                consecutive_weeks_above_85=(
                    request.consecutive_weeks_above_85
                    if request.consecutive_weeks_above_85 is not None
                    else cap.consecutive_weeks_above_85
                ),
                created_at=now,
            )

            self.stage(tx, drop)
            tx.zadd(keys.DROPS_INDEX, {drop.id: now.timestamp()})
            self.stats.record_drop(tx, drop)
            if request.consecutive_weeks_above_85 is not None:
                self.stats.record_weeks_above_85(
                    tx, request.location, request.consecutive_weeks_above_85
                )
            return drop

        drop = await self.state.transaction(_create)

        logger.info(
            "drop_created",
            drop_id=drop.id,
            location=drop.location.value,
            boxes=drop.total_boxes,
            window_start=drop.window_start.isoformat(),
            window_end=drop.window_end.isoformat(),
        )

        return self.with_status(drop)

    async def get_drop(self, drop_id: str) -> Drop:
        """Get a drop by ID."""
        data = await self.state.get(keys.drop_key(drop_id))

        if not data:
            raise NotFoundError(f"Drop {drop_id} not found")

        return self.with_status(Drop(**data))

    async def list_drops(self) -> list[Drop]:
        """All drops, newest first."""
        drop_ids = await self.state.zrange(keys.DROPS_INDEX, desc=True)
        records = await self.state.mget([keys.drop_key(drop_id) for drop_id in drop_ids])
        return [self.with_status(Drop(**data)) for data in records if data]

    async def decrement_available(self, drop_id: str) -> Drop:
        """Move one box from remaining to reserved, failing when sold out."""

        async def _decrement(tx: Transaction) -> Drop:
            drop = self.take_box(await self.read(tx, drop_id))
            self.stage(tx, drop)
            return drop

        drop = await self.state.transaction(_decrement, keys.drop_key(drop_id))
        logger.debug("drop_decremented", drop_id=drop_id, remaining=drop.remaining_boxes)
        return self.with_status(drop)

    async def increment_available(self, drop_id: str) -> Drop:
        """Put one reserved box back on sale."""

        async def _increment(tx: Transaction) -> Drop:
            drop = self.return_box(await self.read(tx, drop_id))
            self.stage(tx, drop)
            return drop

        drop = await self.state.transaction(_increment, keys.drop_key(drop_id))
        logger.debug("drop_incremented", drop_id=drop_id, remaining=drop.remaining_boxes)
        return self.with_status(drop)
