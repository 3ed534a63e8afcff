"""Commission engine — attribution, tier evaluation, payout calculation,
and reporting aggregation.

Every operation here is a pure function of its inputs: no I/O, no shared
mutable state. Payouts for different (promoter, event) pairs may be
computed concurrently without coordination.
"""

from promoter_commission.compensation.aggregator import PayoutAggregator
from promoter_commission.compensation.attribution import AttributionResolver
from promoter_commission.compensation.engine import CommissionEngine
from promoter_commission.compensation.tiers import evaluate_tiers
from promoter_commission.compensation.validation import validate_config

__all__ = [
    "AttributionResolver",
    "CommissionEngine",
    "PayoutAggregator",
    "evaluate_tiers",
    "validate_config",
]
