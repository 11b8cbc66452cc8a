"""Waitlist models."""

from datetime import datetime

from pydantic import BaseModel


class WaitlistEntry(BaseModel):
    """A session's interest in a sold-out drop."""

    id: str
    drop_id: str
    session_id: str
    created_at: datetime
    notified: bool = False


class WaitlistRequest(BaseModel):
    drop_id: str
    session_id: str


class WaitlistResult(BaseModel):
    """Outcome of a join: either newly added or already present."""

    success: bool = False
    already_on_waitlist: bool = False
