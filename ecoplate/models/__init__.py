"""Data models for the reservation engine."""

from ecoplate.models.account import Membership, MembershipPlan, UserAccount, UserAccountUpdate
from ecoplate.models.drop import CreateDropRequest, Drop, DropStatus, Location
from ecoplate.models.pickup_code import (
    PickupCodeRecord,
    PickupCodeStatus,
    RedeemRequest,
    RedemptionResult,
)
from ecoplate.models.reservation import (
    BoxStatus,
    CreateReservationRequest,
    NoShowEntry,
    NoShowRequest,
    PaymentMethod,
    RateRequest,
    Reservation,
    ReservationConfirmation,
    ReservationStatus,
)
from ecoplate.models.stats import DailyRollup, LocationCap, LocationCapUpdate, StatsSnapshot
from ecoplate.models.waitlist import WaitlistEntry, WaitlistRequest, WaitlistResult

__all__ = [
    # Account
    "Membership",
    "MembershipPlan",
    "UserAccount",
    "UserAccountUpdate",
    # Drop
    "CreateDropRequest",
    "Drop",
    "DropStatus",
    "Location",
    # Pickup code
    "PickupCodeRecord",
    "PickupCodeStatus",
    "RedeemRequest",
    "RedemptionResult",
    # Reservation
    "BoxStatus",
    "CreateReservationRequest",
    "NoShowEntry",
    "NoShowRequest",
    "PaymentMethod",
    "RateRequest",
    "Reservation",
    "ReservationConfirmation",
    "ReservationStatus",
    # Stats
    "DailyRollup",
    "LocationCap",
    "LocationCapUpdate",
    "StatsSnapshot",
    # Waitlist
    "WaitlistEntry",
    "WaitlistRequest",
    "WaitlistResult",
]
