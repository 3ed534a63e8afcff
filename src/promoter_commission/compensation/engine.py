"""Commission engine — computes a promoter's payout for one event.

The payout is the sum of four independently optional components:

    per_head   = rate × clamp(guests, min_guests, max_guests)
    fixed_fee  = amount                                  if guests >= minimum_guests
               = amount × below_minimum_percent / 100    otherwise
    bonus      = Σ qualifying tiers (or the simple bonus when no tiers)
    table      = Σ base × rate / 100                     (percentage mode)
               = flat_fee × bookings                     (flat_fee mode)
    total      = round(per_head + fixed_fee + bonus + table)

Invariants:
- Components keep full precision; rounding happens exactly once, on the
  total, to the currency's minor unit using ROUND_HALF_UP.
- An absent component contributes zero and adds no breakdown entry.
- A booking's base is its actual spend, else its minimum spend, else
  its revenue (resolved during attribution).
- A malformed config raises before anything is computed. Missing
  required sub-fields are never treated as zero.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from loguru import logger

from promoter_commission.compensation.tiers import evaluate_simple, evaluate_tiers
from promoter_commission.compensation.validation import validate_config
from promoter_commission.models.attribution import AttributionInput
from promoter_commission.models.commission import (
    CommissionConfig,
    CountBasis,
    FixedFeeRule,
    PerHeadRule,
    TableCommissionMode,
    TableCommissionRule,
)
from promoter_commission.models.payout import BonusEntry, PayoutResult
from promoter_commission.policy.resolver import PolicyResolver


_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class CommissionEngine:
    """Calculates PayoutResults from a config and an attribution.

    Usage:
        engine = CommissionEngine(resolver)
        result = engine.calculate(config, attribution)
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def calculate(
        self,
        config: CommissionConfig,
        attribution: AttributionInput,
        manual_adjustment: Decimal = _ZERO,
    ) -> PayoutResult:
        """Compute the full payout breakdown for one promoter at one event.

        Args:
            config: The resolved commission configuration.
            attribution: Counts and bookings credited to the promoter.
            manual_adjustment: Signed amount added to the payable total
                only; it never changes ``total``.

        Returns:
            A frozen PayoutResult.

        Raises:
            ConfigurationError: A required sub-field is missing or invalid.
            InvalidTierError: A bonus tier is invalid.
        """
        validate_config(config)
        quantum = self._resolver.rounding_quantum(config.currency)

        guests = self._counted_guests(config, attribution)

        per_head_counted, per_head_amount = self._per_head(config.per_head, guests)
        fixed_fee_amount, percent_applied = self._fixed_fee(config.fixed_fee, guests)
        breakdown = self._bonus_entries(config, guests)
        bonus_amount = sum((e.amount for e in breakdown), _ZERO)
        table_amount = self._table_commission(config.table_commission, attribution)

        unrounded = per_head_amount + fixed_fee_amount + bonus_amount + table_amount
        total = unrounded.quantize(quantum, rounding=ROUND_HALF_UP)
        payable = (unrounded + manual_adjustment).quantize(quantum, rounding=ROUND_HALF_UP)

        logger.debug(
            f"Payout {attribution.event_id}/{attribution.promoter_id}: "
            f"per_head={per_head_amount} fixed={fixed_fee_amount} "
            f"bonus={bonus_amount} table={table_amount} total={total} {config.currency}"
        )

        return PayoutResult(
            promoter_id=attribution.promoter_id,
            event_id=attribution.event_id,
            currency=config.currency,
            per_head_amount=per_head_amount,
            fixed_fee_amount=fixed_fee_amount,
            bonus_amount=bonus_amount,
            table_commission_amount=table_amount,
            total=total,
            bonus_breakdown=tuple(breakdown),
            guests_counted=guests,
            per_head_counted=per_head_counted,
            per_head_rate=config.per_head.rate if config.per_head else None,
            fixed_fee_full=config.fixed_fee.amount if config.fixed_fee else None,
            fixed_fee_percent_applied=percent_applied,
            manual_adjustment=manual_adjustment,
            payable_total=payable,
            event_date=attribution.event_date,
            config_id=config.config_id,
        )

    def _counted_guests(
        self, config: CommissionConfig, attribution: AttributionInput
    ) -> int:
        if config.count_basis == CountBasis.CHECKINS:
            return attribution.checked_in_count
        return attribution.guest_count

    def _per_head(
        self, rule: Optional[PerHeadRule], guests: int
    ) -> tuple[int, Decimal]:
        """Clamp the guest count to [min, max] and multiply by the rate.

        min_guests is a payment floor: a promoter below it is paid for
        min_guests heads.
        """
        if rule is None:
            return 0, _ZERO
        counted = max(guests, rule.min_guests or 0)
        if rule.max_guests is not None:
            counted = min(counted, rule.max_guests)
        return counted, rule.rate * counted

    def _fixed_fee(
        self, rule: Optional[FixedFeeRule], guests: int
    ) -> tuple[Decimal, Optional[Decimal]]:
        """Return (amount, percent applied). The discount is linear on
        the full fee, never on a partial guest count."""
        if rule is None:
            return _ZERO, None
        if rule.minimum_guests is not None and guests < rule.minimum_guests:
            percent = (
                rule.below_minimum_percent
                if rule.below_minimum_percent is not None
                else _HUNDRED
            )
            return rule.amount * percent / _HUNDRED, percent
        return rule.amount, _HUNDRED

    def _bonus_entries(
        self, config: CommissionConfig, guests: int
    ) -> List[BonusEntry]:
        # Tiers take precedence; the simple bonus is ignored when tiers exist
        if config.uses_tiers:
            return evaluate_tiers(config.bonus_tiers, guests)
        if config.simple_bonus is not None:
            return evaluate_simple(config.simple_bonus, guests)
        return []

    def _table_commission(
        self,
        rule: Optional[TableCommissionRule],
        attribution: AttributionInput,
    ) -> Decimal:
        if rule is None:
            return _ZERO
        if rule.mode == TableCommissionMode.PERCENTAGE:
            return sum(
                (line.revenue * rule.rate / _HUNDRED for line in attribution.table_bookings),
                _ZERO,
            )
        return rule.flat_fee * len(attribution.table_bookings)
