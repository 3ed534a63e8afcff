"""Commission rule model — pure data describing how a promoter is paid.

A CommissionConfig is a struct of independently optional components.
Any subset may be present: a promoter can be paid per head AND earn
table commission at the same time. Absent components contribute zero.

All monetary values use Decimal. The config carries no behaviour; it is
validated by promoter_commission.compensation.validation.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple


class TableCommissionMode(str, enum.Enum):
    """How table-booking commission is computed."""
    PERCENTAGE = "percentage"
    FLAT_FEE = "flat_fee"


class CountBasis(str, enum.Enum):
    """Which attributed count drives per-head, fixed-fee and bonus rules."""
    REGISTRATIONS = "registrations"
    CHECKINS = "checkins"


@dataclass(frozen=True)
class PerHeadRule:
    """Pays ``rate × clamp(guests, min_guests, max_guests)``.

    ``min_guests`` is a payment floor, not an eligibility gate.
    """
    rate: Optional[Decimal]
    min_guests: Optional[int] = None
    max_guests: Optional[int] = None


@dataclass(frozen=True)
class FixedFeeRule:
    """Pays ``amount``, or ``amount × below_minimum_percent / 100`` when
    the guest count is below ``minimum_guests``."""
    amount: Optional[Decimal]
    minimum_guests: Optional[int] = None
    below_minimum_percent: Optional[Decimal] = None


@dataclass(frozen=True)
class SimpleBonus:
    """One-off bonus paid once the guest count reaches ``threshold``."""
    threshold: int
    amount: Decimal


@dataclass(frozen=True)
class BonusTier:
    """A guest-count threshold that unlocks a bonus.

    Repeatable tiers pay once per full block of ``threshold`` guests;
    non-repeatable tiers are one-time milestones.
    """
    threshold: int
    amount: Decimal
    repeatable: bool = False
    label: Optional[str] = None


@dataclass(frozen=True)
class TableCommissionRule:
    """Commission per table booking attributed to the promoter.

    ``rate`` is a percentage of booking revenue (percentage mode);
    ``flat_fee`` is paid once per booking (flat_fee mode).
    """
    mode: TableCommissionMode
    rate: Optional[Decimal] = None
    flat_fee: Optional[Decimal] = None


@dataclass(frozen=True)
class CommissionConfig:
    """A resolved commission configuration for one promoter at one event.

    May originate from a saved template or an inline assignment override.
    When both ``simple_bonus`` and ``bonus_tiers`` are set, the tiers take
    precedence and the simple bonus is ignored.
    """
    config_id: str
    currency: str
    per_head: Optional[PerHeadRule] = None
    fixed_fee: Optional[FixedFeeRule] = None
    simple_bonus: Optional[SimpleBonus] = None
    bonus_tiers: Tuple[BonusTier, ...] = field(default_factory=tuple)
    table_commission: Optional[TableCommissionRule] = None
    count_basis: CountBasis = CountBasis.REGISTRATIONS
    name: Optional[str] = None

    @property
    def uses_tiers(self) -> bool:
        return len(self.bonus_tiers) > 0


@dataclass(frozen=True)
class PromoterAssignment:
    """A promoter's assignment to an event with its resolved config.

    ``manual_adjustment`` is a signed amount added to the payable total
    after calculation (e.g. a correction agreed at closeout).
    """
    promoter_id: str
    config: CommissionConfig
    manual_adjustment: Decimal = Decimal("0")
