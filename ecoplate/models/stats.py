"""Admin statistics models."""

from pydantic import BaseModel, Field

from ecoplate.models.drop import Location


class LocationCap(BaseModel):
    """Daily cap and pickup performance for one location."""

    location: Location
    current_cap: int
    consecutive_weeks_above_85: int = 0
    boxes_posted: int = 0
    boxes_picked_up: int = 0
    pickup_rate: int = 0


class LocationCapUpdate(BaseModel):
    """Externally maintained cap inputs."""

    current_cap: int | None = Field(default=None, ge=1)
    consecutive_weeks_above_85: int | None = Field(default=None, ge=0)


class DailyRollup(BaseModel):
    """Boxes posted, picked up and missed on one weekday."""

    date: str
    posted: int = 0
    picked_up: int = 0
    no_shows: int = 0


class StatsSnapshot(BaseModel):
    """Running site-wide aggregate."""

    total_drops: int = 0
    total_boxes_posted: int = 0
    total_boxes_picked_up: int = 0
    total_reservations: int = 0
    total_no_shows: int = 0
    pickup_rate: int = 0
    no_show_rate: float = 0.0
    avg_rating: float = 0.0
    location_caps: list[LocationCap] = Field(default_factory=list)
    recent_drops: list[DailyRollup] = Field(default_factory=list)
