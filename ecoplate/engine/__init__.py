"""Reservation/redemption engine components."""

from dataclasses import dataclass

from ecoplate.config import Settings, get_settings
from ecoplate.engine.accounts import AccountLedger
from ecoplate.engine.inventory import InventoryStore
from ecoplate.engine.no_shows import NoShowDetector
from ecoplate.engine.pickup_codes import PickupCodeRegistry
from ecoplate.engine.pricing import calculate_price, price_for
from ecoplate.engine.reservations import ReservationManager
from ecoplate.engine.stats import StatsAggregator
from ecoplate.engine.waitlist import WaitlistRegistry
from ecoplate.state.manager import StateManager
from ecoplate.utils.clock import Clock, local_now


@dataclass
class Engine:
    """All engine components wired over one state manager."""

    state: StateManager
    inventory: InventoryStore
    accounts: AccountLedger
    codes: PickupCodeRegistry
    reservations: ReservationManager
    no_shows: NoShowDetector
    waitlist: WaitlistRegistry
    stats: StatsAggregator


def build_engine(
    state: StateManager,
    clock: Clock = local_now,
    settings: Settings | None = None,
) -> Engine:
    """Wire the engine components together."""
    settings = settings or get_settings()

    stats = StatsAggregator(state, settings)
    inventory = InventoryStore(state, stats, clock=clock, settings=settings)
    accounts = AccountLedger(state)
    codes = PickupCodeRegistry(state, settings)
    reservations = ReservationManager(state, inventory, accounts, codes, stats, clock=clock)

    return Engine(
        state=state,
        inventory=inventory,
        accounts=accounts,
        codes=codes,
        reservations=reservations,
        no_shows=NoShowDetector(reservations, inventory, accounts, clock=clock, settings=settings),
        waitlist=WaitlistRegistry(state, clock=clock),
        stats=stats,
    )


__all__ = [
    "Engine",
    "build_engine",
    "AccountLedger",
    "InventoryStore",
    "NoShowDetector",
    "PickupCodeRegistry",
    "ReservationManager",
    "StatsAggregator",
    "WaitlistRegistry",
    "calculate_price",
    "price_for",
]
