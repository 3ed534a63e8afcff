"""Human-readable rendering of payout breakdowns."""

from __future__ import annotations

from decimal import Decimal

from promoter_commission.compensation.tiers import default_label
from promoter_commission.models.payout import BonusEntry, BonusKind, PayoutResult


def format_amount(amount: Decimal, currency: str, places: int = 2) -> str:
    """Render ``amount`` with thousands separators, e.g. ``IDR 1,850,000.00``."""
    return f"{currency} {amount:,.{places}f}"


def format_payout_breakdown(result: PayoutResult, places: int = 2) -> str:
    """Join the non-zero components of a payout into one line.

    ``places`` is the currency's minor-unit count from the policy.

    Example:
        37 guests × IDR 50,000.00 = IDR 1,850,000.00 + Fixed fee: IDR 3,000,000.00
    """
    cur = result.currency

    def money(amount: Decimal) -> str:
        return format_amount(amount, cur, places)

    parts: list[str] = []

    if result.per_head_amount > 0 and result.per_head_rate is not None:
        parts.append(
            f"{result.per_head_counted} guests × {money(result.per_head_rate)}"
            f" = {money(result.per_head_amount)}"
        )

    if result.fixed_fee_amount > 0:
        percent = result.fixed_fee_percent_applied
        if percent is not None and percent < 100 and result.fixed_fee_full is not None:
            parts.append(
                f"Fixed fee: {money(result.fixed_fee_full)} × {percent.normalize():f}%"
                f" = {money(result.fixed_fee_amount)}"
            )
        else:
            parts.append(f"Fixed fee: {money(result.fixed_fee_amount)}")

    for entry in result.bonus_breakdown:
        if entry.kind == BonusKind.REPEATABLE:
            per_block = entry.amount / entry.times_earned
            text = (
                f"Bonus: {money(per_block)} × {entry.times_earned}"
                f" (every {entry.threshold} guests)"
            )
        else:
            text = f"Bonus: {money(entry.amount)} ({entry.threshold}+ guests)"
        parts.append(text + _label_suffix(entry))

    if result.table_commission_amount > 0:
        parts.append(f"Tables: {money(result.table_commission_amount)}")

    if result.manual_adjustment != 0:
        sign = "+" if result.manual_adjustment > 0 else "-"
        parts.append(f"Manual adjustment: {sign}{money(abs(result.manual_adjustment))}")

    return " + ".join(parts)


def _label_suffix(entry: BonusEntry) -> str:
    # The threshold is already shown; a generated label would repeat it
    if entry.label == default_label(entry.kind, entry.threshold):
        return ""
    return f" - {entry.label}"
