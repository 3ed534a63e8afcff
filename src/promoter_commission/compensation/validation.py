"""Config validation — rejects malformed commission configs before any
calculation runs.

A bad template must never silently zero out or skew a payout run, so
every missing required sub-field is an error, never a default.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from promoter_commission.errors import ConfigurationError, InvalidTierError
from promoter_commission.models.commission import (
    BonusTier,
    CommissionConfig,
    TableCommissionMode,
)


_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def validate_config(config: CommissionConfig) -> None:
    """Raise ConfigurationError or InvalidTierError if ``config`` is malformed."""
    if not config.currency:
        raise ConfigurationError("currency", "is required")

    if config.per_head is not None:
        rule = config.per_head
        if rule.rate is None:
            raise ConfigurationError("per_head.rate", "is required when per_head is set")
        _non_negative(rule.rate, "per_head.rate")
        _non_negative_count(rule.min_guests, "per_head.min_guests")
        _non_negative_count(rule.max_guests, "per_head.max_guests")
        if (
            rule.min_guests is not None
            and rule.max_guests is not None
            and rule.min_guests > rule.max_guests
        ):
            raise ConfigurationError(
                "per_head.min_guests",
                f"min_guests ({rule.min_guests}) exceeds max_guests ({rule.max_guests})",
            )

    if config.fixed_fee is not None:
        rule = config.fixed_fee
        if rule.amount is None:
            raise ConfigurationError("fixed_fee.amount", "is required when fixed_fee is set")
        _non_negative(rule.amount, "fixed_fee.amount")
        _non_negative_count(rule.minimum_guests, "fixed_fee.minimum_guests")
        if rule.below_minimum_percent is not None:
            if not (_ZERO <= rule.below_minimum_percent <= _HUNDRED):
                raise ConfigurationError(
                    "fixed_fee.below_minimum_percent",
                    f"must be within 0..100, got {rule.below_minimum_percent}",
                )

    if config.simple_bonus is not None and not config.uses_tiers:
        bonus = config.simple_bonus
        if bonus.threshold <= 0:
            raise InvalidTierError(
                f"threshold must be > 0, got {bonus.threshold}",
                threshold=bonus.threshold,
            )
        if bonus.amount < _ZERO:
            raise InvalidTierError(
                f"amount must be >= 0, got {bonus.amount}",
                threshold=bonus.threshold,
            )

    validate_tiers(config.bonus_tiers)

    if config.table_commission is not None:
        rule = config.table_commission
        if rule.mode == TableCommissionMode.PERCENTAGE:
            if rule.rate is None:
                raise ConfigurationError(
                    "table_commission.rate", "is required for percentage mode"
                )
            _non_negative(rule.rate, "table_commission.rate")
        elif rule.mode == TableCommissionMode.FLAT_FEE:
            if rule.flat_fee is None:
                raise ConfigurationError(
                    "table_commission.flat_fee", "is required for flat_fee mode"
                )
            _non_negative(rule.flat_fee, "table_commission.flat_fee")
        else:
            raise ConfigurationError(
                "table_commission.mode", f"unknown mode {rule.mode!r}"
            )


def validate_tiers(tiers: tuple[BonusTier, ...]) -> None:
    """Reject invalid tiers and duplicate non-repeatable thresholds.

    Duplicates are a caller error; they are never merged.
    """
    seen_milestones: set[int] = set()
    for index, tier in enumerate(tiers):
        if tier.threshold <= 0:
            raise InvalidTierError(
                f"threshold must be > 0, got {tier.threshold}",
                index=index, threshold=tier.threshold,
            )
        if tier.amount < _ZERO:
            raise InvalidTierError(
                f"amount must be >= 0, got {tier.amount}",
                index=index, threshold=tier.threshold,
            )
        if not tier.repeatable:
            if tier.threshold in seen_milestones:
                raise InvalidTierError(
                    f"duplicate non-repeatable tier at threshold {tier.threshold}",
                    index=index, threshold=tier.threshold,
                )
            seen_milestones.add(tier.threshold)


def _non_negative(value: Decimal, field: str) -> None:
    if value < _ZERO:
        raise ConfigurationError(field, f"must be >= 0, got {value}")


def _non_negative_count(value: Optional[int], field: str) -> None:
    if value is not None and value < 0:
        raise ConfigurationError(field, f"must be >= 0, got {value}")
