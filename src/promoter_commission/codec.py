"""Codec — converts between JSON-shaped dicts and engine records.

Templates arrive in the flat snake_case shape used by the configuration
store (``per_head_rate``, ``fixed_fee``, ``bonus_tiers``, ...). An
assignment may override a template; overrides replace whole components,
never individual fields inside a component.

JSON numbers are converted to Decimal through ``str()`` so that no float
ever reaches a money path.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from promoter_commission.compensation.validation import validate_config
from promoter_commission.errors import ConfigurationError
from promoter_commission.models.attribution import Registration, TableBooking
from promoter_commission.models.commission import (
    BonusTier,
    CommissionConfig,
    CountBasis,
    FixedFeeRule,
    PerHeadRule,
    SimpleBonus,
    TableCommissionMode,
    TableCommissionRule,
)
from promoter_commission.models.payout import BonusEntry, BonusKind, PayoutResult
from promoter_commission.policy.resolver import PolicyResolver


# Template keys grouped by the component they configure.
COMPONENT_FIELDS: Dict[str, Tuple[str, ...]] = {
    "currency": ("currency",),
    "count_basis": ("count_basis",),
    "per_head": ("per_head_rate", "per_head_min", "per_head_max"),
    "fixed_fee": ("fixed_fee", "minimum_guests", "below_minimum_percent"),
    "bonus": ("bonus_threshold", "bonus_amount", "bonus_tiers"),
    "table_commission": (
        "table_commission_type",
        "table_commission_rate",
        "table_commission_flat_fee",
    ),
}


# ------------------------------------------------------------------ #
# Templates                                                           #
# ------------------------------------------------------------------ #

def apply_overrides(
    template: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """Merge assignment overrides into a template, component by component.

    A component is taken from ``overrides`` when any of its keys is
    present there (an explicit null disables it); otherwise the
    template's keys for that component are kept.
    """
    merged = dict(template)
    if not overrides:
        return merged
    for fields in COMPONENT_FIELDS.values():
        if any(key in overrides for key in fields):
            for key in fields:
                merged[key] = overrides.get(key)
    for key in ("id", "template_id", "name"):
        if key in overrides:
            merged[key] = overrides[key]
    return merged


def config_from_template(
    data: Mapping[str, Any],
    resolver: PolicyResolver,
    config_id: Optional[str] = None,
) -> CommissionConfig:
    """Build and validate a CommissionConfig from a flat template dict.

    A per-head or fixed-fee component exists only when its rate or amount
    is set; modifier keys without one are ignored. Bonus tier rows with a
    zero amount are blank editor rows and are dropped; every other invalid
    row raises InvalidTierError.
    """
    cid = config_id or str(data.get("id") or data.get("template_id") or "inline")
    currency = data.get("currency") or resolver.default_currency()

    per_head = None
    if data.get("per_head_rate") is not None:
        per_head = PerHeadRule(
            rate=parse_decimal(data.get("per_head_rate"), "per_head_rate"),
            min_guests=_int(data.get("per_head_min"), "per_head_min"),
            max_guests=_int(data.get("per_head_max"), "per_head_max"),
        )

    fixed_fee = None
    if data.get("fixed_fee") is not None:
        fixed_fee = FixedFeeRule(
            amount=parse_decimal(data.get("fixed_fee"), "fixed_fee"),
            minimum_guests=_int(data.get("minimum_guests"), "minimum_guests"),
            below_minimum_percent=parse_decimal(
                data.get("below_minimum_percent"), "below_minimum_percent"
            ),
        )

    simple_bonus = None
    threshold = data.get("bonus_threshold")
    amount = data.get("bonus_amount")
    if threshold is not None or amount is not None:
        if threshold is None:
            raise ConfigurationError("bonus_threshold", "is required when bonus_amount is set")
        if amount is None:
            raise ConfigurationError("bonus_amount", "is required when bonus_threshold is set")
        simple_bonus = SimpleBonus(
            threshold=_int(threshold, "bonus_threshold"),
            amount=parse_decimal(amount, "bonus_amount"),
        )

    tiers = []
    for index, row in enumerate(data.get("bonus_tiers") or ()):
        tier = _tier_from_dict(row, index)
        if tier.amount == Decimal("0"):
            continue
        tiers.append(tier)

    table = None
    if _any_set(data, COMPONENT_FIELDS["table_commission"]):
        mode = data.get("table_commission_type")
        if not mode:
            raise ConfigurationError(
                "table_commission_type", "is required when a table commission is set"
            )
        try:
            mode = TableCommissionMode(mode)
        except ValueError:
            raise ConfigurationError(
                "table_commission_type", f"unknown mode {mode!r}"
            ) from None
        table = TableCommissionRule(
            mode=mode,
            rate=parse_decimal(data.get("table_commission_rate"), "table_commission_rate"),
            flat_fee=parse_decimal(
                data.get("table_commission_flat_fee"), "table_commission_flat_fee"
            ),
        )

    basis = data.get("count_basis")
    try:
        count_basis = CountBasis(basis) if basis else resolver.default_count_basis()
    except ValueError:
        raise ConfigurationError("count_basis", f"unknown basis {basis!r}") from None

    config = CommissionConfig(
        config_id=cid,
        currency=str(currency),
        per_head=per_head,
        fixed_fee=fixed_fee,
        simple_bonus=simple_bonus,
        bonus_tiers=tuple(tiers),
        table_commission=table,
        count_basis=count_basis,
        name=data.get("name"),
    )
    validate_config(config)
    resolver.minor_units(config.currency)
    return config


def _tier_from_dict(row: Mapping[str, Any], index: int) -> BonusTier:
    threshold = _int(row.get("threshold", 0), f"bonus_tiers[{index}].threshold")
    amount = parse_decimal(row.get("amount", 0), f"bonus_tiers[{index}].amount")
    return BonusTier(
        threshold=threshold if threshold is not None else 0,
        amount=amount if amount is not None else Decimal("0"),
        repeatable=bool(row.get("repeatable", False)),
        label=row.get("label") or None,
    )


# ------------------------------------------------------------------ #
# Input records                                                       #
# ------------------------------------------------------------------ #

def registration_from_dict(data: Mapping[str, Any]) -> Registration:
    return Registration(
        registration_id=str(data.get("id") or data["registration_id"]),
        event_id=str(data["event_id"]),
        referral_promoter_id=data.get("referral_promoter_id"),
        checked_in_at=_datetime(data.get("checked_in_at")),
        checkin_undone_at=_datetime(data.get("checkin_undone_at")),
    )


def booking_from_dict(data: Mapping[str, Any]) -> TableBooking:
    return TableBooking(
        booking_id=str(data.get("id") or data["booking_id"]),
        event_id=str(data["event_id"]),
        responsible_promoter_id=data.get("responsible_promoter_id"),
        revenue=parse_decimal(data.get("revenue", 0), "revenue") or Decimal("0"),
        deposit=parse_decimal(data.get("deposit", 0), "deposit") or Decimal("0"),
        status=str(data.get("status", "confirmed")),
        locked=bool(data.get("locked", False)),
        actual_spend=parse_decimal(data.get("actual_spend"), "actual_spend"),
        minimum_spend=parse_decimal(data.get("minimum_spend"), "minimum_spend"),
    )


# ------------------------------------------------------------------ #
# Payout results                                                      #
# ------------------------------------------------------------------ #

def payout_to_dict(result: PayoutResult) -> Dict[str, Any]:
    """Serialise a PayoutResult to a JSON-safe dict (Decimals as strings)."""
    return {
        "promoter_id": result.promoter_id,
        "event_id": result.event_id,
        "event_date": result.event_date.isoformat() if result.event_date else None,
        "config_id": result.config_id,
        "currency": result.currency,
        "guests_counted": result.guests_counted,
        "per_head_counted": result.per_head_counted,
        "per_head_rate": _str(result.per_head_rate),
        "per_head_amount": str(result.per_head_amount),
        "fixed_fee_full": _str(result.fixed_fee_full),
        "fixed_fee_percent_applied": _str(result.fixed_fee_percent_applied),
        "fixed_fee_amount": str(result.fixed_fee_amount),
        "bonus_amount": str(result.bonus_amount),
        "bonus_breakdown": [
            {
                "label": entry.label,
                "amount": str(entry.amount),
                "kind": entry.kind.value,
                "threshold": entry.threshold,
                "times_earned": entry.times_earned,
            }
            for entry in result.bonus_breakdown
        ],
        "table_commission_amount": str(result.table_commission_amount),
        "total": str(result.total),
        "manual_adjustment": str(result.manual_adjustment),
        "payable_total": _str(result.payable_total),
    }


def payout_from_dict(data: Mapping[str, Any]) -> PayoutResult:
    """Inverse of payout_to_dict."""
    return PayoutResult(
        promoter_id=str(data["promoter_id"]),
        event_id=str(data["event_id"]),
        currency=str(data["currency"]),
        per_head_amount=Decimal(str(data.get("per_head_amount", "0"))),
        fixed_fee_amount=Decimal(str(data.get("fixed_fee_amount", "0"))),
        bonus_amount=Decimal(str(data.get("bonus_amount", "0"))),
        table_commission_amount=Decimal(str(data.get("table_commission_amount", "0"))),
        total=Decimal(str(data["total"])),
        bonus_breakdown=tuple(
            BonusEntry(
                label=entry["label"],
                amount=Decimal(str(entry["amount"])),
                kind=BonusKind(entry["kind"]),
                threshold=int(entry["threshold"]),
                times_earned=int(entry.get("times_earned", 1)),
            )
            for entry in data.get("bonus_breakdown", ())
        ),
        guests_counted=int(data.get("guests_counted", 0)),
        per_head_counted=int(data.get("per_head_counted", 0)),
        per_head_rate=parse_decimal(data.get("per_head_rate"), "per_head_rate"),
        fixed_fee_full=parse_decimal(data.get("fixed_fee_full"), "fixed_fee_full"),
        fixed_fee_percent_applied=parse_decimal(
            data.get("fixed_fee_percent_applied"), "fixed_fee_percent_applied"
        ),
        manual_adjustment=Decimal(str(data.get("manual_adjustment", "0"))),
        payable_total=parse_decimal(data.get("payable_total"), "payable_total"),
        event_date=parse_date(data.get("event_date")),
        config_id=data.get("config_id"),
    )


# ------------------------------------------------------------------ #
# Scalars                                                             #
# ------------------------------------------------------------------ #

def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def parse_decimal(value: Any, field: str) -> Optional[Decimal]:
    """Parse a JSON scalar as Decimal; blank is None, garbage is a ConfigurationError."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigurationError(field, f"expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(field, f"expected a number, got {value!r}") from None


def _int(value: Any, field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigurationError(field, f"expected an integer, got {value!r}")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(field, f"expected an integer, got {value!r}") from None
    if number != number.to_integral_value():
        raise ConfigurationError(field, f"expected an integer, got {value!r}")
    return int(number)


def _str(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _any_set(data: Mapping[str, Any], keys: Tuple[str, ...]) -> bool:
    return any(data.get(key) is not None for key in keys)
