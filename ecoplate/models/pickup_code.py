"""Pickup code (redemption credential) models."""

from enum import Enum

from pydantic import BaseModel

from ecoplate.models.drop import Drop, Location
from ecoplate.models.reservation import Reservation


class PickupCodeStatus(str, Enum):
    """Pickup code states. Redeemed and expired are terminal."""

    VALID = "valid"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class PickupCodeRecord(BaseModel):
    """Maps a short code to exactly one reservation."""

    code: str
    reservation_id: str
    drop_id: str
    status: PickupCodeStatus = PickupCodeStatus.VALID


class RedeemRequest(BaseModel):
    """Counter input: a bare code or a scanned QR payload."""

    code: str


class RedemptionResult(BaseModel):
    """Outcome of a redemption attempt."""

    valid: bool
    reason: str | None = None
    reservation: Reservation | None = None
    drop: Drop | None = None
    location: Location | None = None

    @classmethod
    def rejected(cls, reason: str) -> "RedemptionResult":
        return cls(valid=False, reason=reason)
