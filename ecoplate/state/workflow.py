"""State machines for reservations and pickup codes."""

from ecoplate.models.pickup_code import PickupCodeStatus
from ecoplate.models.reservation import ReservationStatus


class ReservationTransitions:
    """Valid reservation state transitions. Every non-reserved state is final."""

    TRANSITIONS = {
        ReservationStatus.RESERVED: [
            ReservationStatus.PICKED_UP,
            ReservationStatus.CANCELLED,
            ReservationStatus.NO_SHOW,
        ],
        ReservationStatus.PICKED_UP: [],
        ReservationStatus.CANCELLED: [],
        ReservationStatus.NO_SHOW: [],
    }

    @classmethod
    def can_transition(cls, from_state: ReservationStatus, to_state: ReservationStatus) -> bool:
        """Check if a state transition is valid."""
        return to_state in cls.TRANSITIONS.get(from_state, [])


class PickupCodeTransitions:
    """Valid pickup code transitions: valid -> redeemed | expired, nothing after."""

    TRANSITIONS = {
        PickupCodeStatus.VALID: [PickupCodeStatus.REDEEMED, PickupCodeStatus.EXPIRED],
        PickupCodeStatus.REDEEMED: [],
        PickupCodeStatus.EXPIRED: [],
    }

    @classmethod
    def can_transition(cls, from_state: PickupCodeStatus, to_state: PickupCodeStatus) -> bool:
        """Check if a state transition is valid."""
        return to_state in cls.TRANSITIONS.get(from_state, [])
