"""State management modules."""

from ecoplate.state.manager import StateManager, Transaction
from ecoplate.state.workflow import PickupCodeTransitions, ReservationTransitions

__all__ = ["StateManager", "Transaction", "ReservationTransitions", "PickupCodeTransitions"]
