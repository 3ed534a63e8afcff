"""Attribution records — the inputs supplied by the registration and
table-booking stores, and the per-promoter counts derived from them.

Attribution is explicit: a registration is credited to the promoter
recorded at registration time, or to nobody. Table bookings are credited
by their own responsible promoter, independent of registrations.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple


@dataclass(frozen=True)
class Registration:
    """A guest registration for an event.

    A check-in counts only while it has not been undone.
    """
    registration_id: str
    event_id: str
    referral_promoter_id: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checkin_undone_at: Optional[datetime] = None

    @property
    def is_checked_in(self) -> bool:
        return self.checked_in_at is not None and self.checkin_undone_at is None


class SpendSource(str, enum.Enum):
    """Which booking figure a table commission was based on."""
    ACTUAL = "actual"
    MINIMUM = "minimum"
    REVENUE = "revenue"


@dataclass(frozen=True)
class TableBooking:
    """A table booking for an event with a responsible promoter.

    When spend figures are recorded, the commission base is
    ``actual_spend``, falling back to ``minimum_spend``; otherwise it is
    ``revenue``. ``locked`` marks a booking already closed out; it is
    still attributed and paid.
    """
    booking_id: str
    event_id: str
    responsible_promoter_id: Optional[str]
    revenue: Decimal
    deposit: Decimal = Decimal("0")
    status: str = "confirmed"
    locked: bool = False
    actual_spend: Optional[Decimal] = None
    minimum_spend: Optional[Decimal] = None

    def commission_base(self) -> Tuple[Decimal, SpendSource]:
        if self.actual_spend is not None:
            return self.actual_spend, SpendSource.ACTUAL
        if self.minimum_spend is not None:
            return self.minimum_spend, SpendSource.MINIMUM
        return self.revenue, SpendSource.REVENUE


@dataclass(frozen=True)
class BookingLine:
    """The commission base figures of one attributed booking.

    ``revenue`` holds the commission base chosen per ``spend_source``.
    """
    booking_id: str
    revenue: Decimal
    deposit: Decimal
    spend_source: SpendSource = SpendSource.REVENUE
    locked: bool = False


@dataclass(frozen=True)
class AttributionInput:
    """Per-event, per-promoter counts consumed by the calculator.

    Invariant: checked_in_count <= guest_count.
    """
    event_id: str
    promoter_id: str
    guest_count: int = 0
    checked_in_count: int = 0
    table_bookings: Tuple[BookingLine, ...] = field(default_factory=tuple)
    event_date: Optional[date] = None
