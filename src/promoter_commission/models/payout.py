"""Payout results — the engine's output records.

Invariant (per PayoutResult):
    total == round(per_head_amount + fixed_fee_amount
                   + bonus_amount + table_commission_amount)

Component amounts keep full precision; rounding to the currency's minor
unit happens exactly once, when the total is formed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Tuple


class BonusKind(str, enum.Enum):
    """Origin of a bonus breakdown entry."""
    SIMPLE = "simple"
    MILESTONE = "milestone"
    REPEATABLE = "repeatable"


class GroupBy(str, enum.Enum):
    """Aggregation grouping."""
    PROMOTER = "promoter"
    PROMOTER_TREE = "promoter_tree"


@dataclass(frozen=True)
class BonusEntry:
    """One qualifying bonus in a payout's breakdown.

    ``amount`` is the total contribution of the entry, i.e. the tier amount
    multiplied by ``times_earned`` for repeatable tiers.
    """
    label: str
    amount: Decimal
    kind: BonusKind
    threshold: int
    times_earned: int = 1


@dataclass(frozen=True)
class PayoutResult:
    """A promoter's payout for one event, with its full breakdown."""
    promoter_id: str
    event_id: str
    currency: str
    per_head_amount: Decimal
    fixed_fee_amount: Decimal
    bonus_amount: Decimal
    table_commission_amount: Decimal
    total: Decimal
    bonus_breakdown: Tuple[BonusEntry, ...] = field(default_factory=tuple)
    guests_counted: int = 0
    per_head_counted: int = 0
    per_head_rate: Optional[Decimal] = None
    fixed_fee_full: Optional[Decimal] = None
    fixed_fee_percent_applied: Optional[Decimal] = None
    manual_adjustment: Decimal = Decimal("0")
    payable_total: Optional[Decimal] = None
    event_date: Optional[date] = None
    config_id: Optional[str] = None

    @property
    def component_sum(self) -> Decimal:
        """Unrounded sum of the four components."""
        return (
            self.per_head_amount
            + self.fixed_fee_amount
            + self.bonus_amount
            + self.table_commission_amount
        )


@dataclass(frozen=True)
class AggregateRow:
    """Per-group totals produced by the aggregator.

    Totals are kept per currency; no conversion is performed.
    """
    group_key: str
    totals_by_currency: Dict[str, Decimal]
    event_count: int
    payable_by_currency: Dict[str, Decimal] = field(default_factory=dict)
