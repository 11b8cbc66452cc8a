"""Per-session account models."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class MembershipPlan(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"


class Membership(BaseModel):
    """Prepaid membership granting monthly credits."""

    plan: MembershipPlan
    monthly_price: Decimal = Field(ge=0)
    credits_per_month: int = Field(ge=0)
    early_access: bool = False
    months_under_used: int = Field(default=0, ge=0)


class UserAccount(BaseModel):
    """State kept for one anonymous session."""

    is_first_time: bool = False
    total_pickups: int = Field(default=0, ge=0)
    no_show_count: int = Field(default=0, ge=0)
    has_account: bool = False
    has_card_saved: bool = False
    card_last4: str = ""
    membership: Membership | None = None
    credits_remaining: int = Field(default=0, ge=0)

    def debit_credit(self) -> None:
        """Spend one credit, never going below zero."""
        self.credits_remaining = max(0, self.credits_remaining - 1)

    def credit_back(self) -> None:
        """Refund one credit."""
        self.credits_remaining += 1

    def record_card(self, last4: str) -> bool:
        """Save a card on file. The first saved card wins."""
        if self.has_card_saved:
            return False
        self.has_card_saved = True
        self.card_last4 = last4
        return True

    def record_pickup(self) -> None:
        self.total_pickups += 1

    def record_no_show(self) -> None:
        self.no_show_count += 1


class UserAccountUpdate(BaseModel):
    """Partial account update; unset fields keep their stored value."""

    is_first_time: bool | None = None
    total_pickups: int | None = Field(default=None, ge=0)
    no_show_count: int | None = Field(default=None, ge=0)
    has_account: bool | None = None
    has_card_saved: bool | None = None
    card_last4: str | None = None
    membership: Membership | None = None
    credits_remaining: int | None = Field(default=None, ge=0)
