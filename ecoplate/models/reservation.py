"""Reservation models."""

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from ecoplate.models.drop import Drop, Location


class ReservationStatus(str, Enum):
    """Reservation lifecycle states."""

    RESERVED = "reserved"
    PICKED_UP = "picked_up"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """How the box is paid for."""

    CARD = "card"
    CREDIT = "credit"
    PAY_AT_PICKUP = "pay_at_pickup"


class BoxStatus(str, Enum):
    """What happened to an unclaimed box."""

    RELEASED = "released"
    DONATED = "donated"
    DISPOSED = "disposed"


class Reservation(BaseModel):
    """A claim on one box of a drop, held by an anonymous session."""

    id: str
    drop_id: str
    session_id: str

    # Drop snapshot, frozen at creation
    drop_location: Location
    drop_location_detail: str
    drop_date: dt.date
    drop_window_start: dt.time
    drop_window_end: dt.time
    drop_image_ref: str = ""

    pickup_code: str
    status: ReservationStatus = ReservationStatus.RESERVED
    created_at: dt.datetime
    payment_method: PaymentMethod
    card_last4: str | None = None
    current_price: Decimal = Field(ge=0)

    rating: int | None = Field(default=None, ge=1, le=5)
    box_status: BoxStatus | None = None

    cancelled_at: dt.datetime | None = None
    picked_up_at: dt.datetime | None = None
    rated_at: dt.datetime | None = None
    no_show_at: dt.datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.RESERVED


class CreateReservationRequest(BaseModel):
    """Request to reserve one box of a drop."""

    drop_id: str
    session_id: str = Field(min_length=1)
    payment_method: PaymentMethod
    card_last4: str | None = Field(default=None, pattern=r"^\d{4}$")


class ReservationConfirmation(BaseModel):
    """A new reservation together with the drop's updated counters."""

    reservation: Reservation
    drop: Drop


class RateRequest(BaseModel):
    """Post-pickup rating."""

    session_id: str
    rating: int = Field(ge=1, le=5)


class NoShowRequest(BaseModel):
    """Operator's disposition of an unclaimed box."""

    box_status: BoxStatus = BoxStatus.RELEASED


class NoShowEntry(BaseModel):
    """A reservation whose pickup window passed without a redemption."""

    reservation_id: str
    session_id: str
    code: str
    location: Location
    time: str
    repeat_offender: bool
    box_status: BoxStatus | None = None
    already_marked: bool = False
