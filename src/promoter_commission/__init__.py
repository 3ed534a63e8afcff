"""Promoter referral & commission calculation engine.

Attributes guest registrations and table bookings to promoters, computes
deterministic per-event payouts from composable commission rules, and
rolls payouts up for reporting.
"""

from promoter_commission.compensation import (
    AttributionResolver,
    CommissionEngine,
    PayoutAggregator,
    evaluate_tiers,
    validate_config,
)
from promoter_commission.errors import (
    CommissionError,
    ConfigurationError,
    HierarchyError,
    InvalidTierError,
)
from promoter_commission.policy.resolver import PolicyResolver
from promoter_commission.service import PayoutService, ServiceResult

__version__ = "0.1.0"
__all__ = [
    "AttributionResolver",
    "CommissionEngine",
    "CommissionError",
    "ConfigurationError",
    "HierarchyError",
    "InvalidTierError",
    "PayoutAggregator",
    "PayoutService",
    "PolicyResolver",
    "ServiceResult",
    "evaluate_tiers",
    "validate_config",
]
