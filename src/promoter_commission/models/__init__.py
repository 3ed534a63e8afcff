"""Data models for the promoter commission engine."""

from promoter_commission.models.attribution import (
    AttributionInput,
    BookingLine,
    Registration,
    SpendSource,
    TableBooking,
)
from promoter_commission.models.commission import (
    BonusTier,
    CommissionConfig,
    CountBasis,
    FixedFeeRule,
    PerHeadRule,
    PromoterAssignment,
    SimpleBonus,
    TableCommissionMode,
    TableCommissionRule,
)
from promoter_commission.models.payout import (
    AggregateRow,
    BonusEntry,
    BonusKind,
    GroupBy,
    PayoutResult,
)

__all__ = [
    "AggregateRow",
    "AttributionInput",
    "BonusEntry",
    "BonusKind",
    "BonusTier",
    "BookingLine",
    "CommissionConfig",
    "CountBasis",
    "FixedFeeRule",
    "GroupBy",
    "PayoutResult",
    "PerHeadRule",
    "PromoterAssignment",
    "Registration",
    "SimpleBonus",
    "SpendSource",
    "TableBooking",
    "TableCommissionMode",
    "TableCommissionRule",
]
