"""Tier evaluator — evaluates bonus tiers against a guest count.

Rules:
- Tiers are sorted ascending by threshold; input order is not trusted.
- A non-repeatable tier pays its amount once when guests >= threshold.
- A repeatable tier pays amount × floor(guests / threshold).
- Every qualifying tier is paid; there is no "best tier" selection.

Output is in ascending threshold order so that displays are stable.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from promoter_commission.models.commission import BonusTier, SimpleBonus
from promoter_commission.models.payout import BonusEntry, BonusKind


def evaluate_tiers(tiers: Iterable[BonusTier], guest_count: int) -> List[BonusEntry]:
    """Return one BonusEntry per qualifying tier, ascending by threshold.

    Tiers contributing nothing are omitted.
    """
    entries: List[BonusEntry] = []
    # sorted() is stable: equal thresholds keep their configured order
    for tier in sorted(tiers, key=lambda t: t.threshold):
        if guest_count < tier.threshold:
            continue
        if tier.repeatable:
            times = guest_count // tier.threshold
            kind = BonusKind.REPEATABLE
        else:
            times = 1
            kind = BonusKind.MILESTONE
        amount = tier.amount * times
        if amount == Decimal("0"):
            continue
        entries.append(BonusEntry(
            label=tier.label or default_label(kind, tier.threshold),
            amount=amount,
            kind=kind,
            threshold=tier.threshold,
            times_earned=times,
        ))
    return entries


def evaluate_simple(bonus: SimpleBonus, guest_count: int) -> List[BonusEntry]:
    """Return the single simple-bonus entry if its threshold is met."""
    if guest_count < bonus.threshold or bonus.amount == Decimal("0"):
        return []
    return [BonusEntry(
        label=default_label(BonusKind.SIMPLE, bonus.threshold),
        amount=bonus.amount,
        kind=BonusKind.SIMPLE,
        threshold=bonus.threshold,
    )]


def default_label(kind: BonusKind, threshold: int) -> str:
    """Label used for a bonus entry when its tier has none configured."""
    if kind == BonusKind.REPEATABLE:
        return f"Every {threshold} guests"
    return f"{threshold}+ guests"
