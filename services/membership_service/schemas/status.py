from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.membership_service.models import MembershipState


class MembershipStatus(BaseModel):
    # Camel-case aliases accept status objects written by the web client
    membership_end: Optional[datetime] = Field(default=None, alias="membershipEnd")
    membership_state: Optional[MembershipState] = Field(
        default=None, alias="membershipState"
    )
    coach_end: Optional[datetime] = Field(default=None, alias="coachEnd")
    coach_active: bool = Field(default=False, alias="coachActive")
    # Business-zone YYYY-MM-DD of the two end instants
    membership_end_day: Optional[str] = Field(default=None, alias="membershipEndDay")
    coach_end_day: Optional[str] = Field(default=None, alias="coachEndDay")

    # Unknown keys raise instead of reading as "no membership"
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    @property
    def membership_active(self) -> bool:
        return self.membership_state == MembershipState.ACTIVE


class PurchaseDecision(BaseModel):
    ok: bool
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def allow(cls) -> "PurchaseDecision":
        return cls(ok=True)

    @classmethod
    def reject(cls, error: str) -> "PurchaseDecision":
        return cls(ok=False, error=error)


class PriceQuote(BaseModel):
    price: float
    list_price: float
    promo_applied: bool = False
    recent_uses: int = 0  # Same item bought within the promo window

    model_config = ConfigDict(frozen=True)


class ExtensionPlan(BaseModel):
    """New inclusive end days produced by one purchase; "" = leg untouched."""

    gym_valid_until: str = ""
    coach_valid_until: str = ""

    model_config = ConfigDict(frozen=True)
