"""Drop (surplus-food batch) models."""

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from ecoplate.utils.clock import window_bounds


class Location(str, Enum):
    """Campus sites that post drops."""

    ANTEATERY = "Anteatery"
    BRANDYWINE = "Brandywine"


class DropStatus(str, Enum):
    """Temporal state of a drop, derived from its window."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"


class Drop(BaseModel):
    """A time-boxed batch of fungible boxes at one location."""

    id: str
    location: Location
    location_detail: str
    date: dt.date
    window_start: dt.time
    window_end: dt.time
    total_boxes: int = Field(ge=1)
    remaining_boxes: int = Field(ge=0)
    reserved_boxes: int = Field(ge=0)
    price_min: Decimal = Field(ge=0)
    price_max: Decimal = Field(ge=0)
    status: DropStatus = DropStatus.UPCOMING
    description: str = ""
    image_ref: str = ""
    daily_cap: int = 30
    consecutive_weeks_above_85: int = 0
    created_at: dt.datetime

    @model_validator(mode="after")
    def check_capacity(self) -> "Drop":
        """Every box is either remaining or reserved."""
        if self.remaining_boxes + self.reserved_boxes != self.total_boxes:
            raise ValueError("remaining_boxes + reserved_boxes must equal total_boxes")
        return self

    @property
    def is_sold_out(self) -> bool:
        return self.remaining_boxes <= 0

    def status_at(self, now: dt.datetime) -> DropStatus:
        """Compute the drop's status at a given wall-clock time."""
        start, end = window_bounds(self.date, self.window_start, self.window_end)
        if now < start:
            return DropStatus.UPCOMING
        if now > end:
            return DropStatus.ENDED
        return DropStatus.ACTIVE

    def window_ended(self, now: dt.datetime) -> bool:
        return self.status_at(now) == DropStatus.ENDED

    def take_box(self) -> "Drop":
        """Return a copy with one box moved from remaining to reserved."""
        return self.model_copy(
            update={
                "remaining_boxes": self.remaining_boxes - 1,
                "reserved_boxes": self.reserved_boxes + 1,
            }
        )

    def return_box(self) -> "Drop":
        """Return a copy with one reserved box put back on sale."""
        return self.model_copy(
            update={
                "remaining_boxes": self.remaining_boxes + 1,
                "reserved_boxes": self.reserved_boxes - 1,
            }
        )


class CreateDropRequest(BaseModel):
    """Admin request to post a new drop."""

    location: Location
    location_detail: str | None = None
    boxes: int = Field(ge=1, le=100)
    window_start: dt.time
    window_end: dt.time
    price_min: Decimal = Field(ge=1, le=10)
    price_max: Decimal = Field(ge=1, le=10)
    description: str | None = None
    image_ref: str | None = None
    date: dt.date | None = None
    daily_cap: int | None = Field(default=None, ge=1)
    consecutive_weeks_above_85: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_ranges(self) -> "CreateDropRequest":
        """Validate the pickup window and price band."""
        if self.window_start >= self.window_end:
            raise ValueError("End time must be after start time")
        if self.price_max < self.price_min:
            raise ValueError("Max must be >= min price")
        if self.daily_cap is not None and self.boxes > self.daily_cap:
            raise ValueError(f"Maximum is {self.daily_cap} boxes for this location")
        return self
