"""Payout service — facade over the commission engine.

Orchestrates one payout run:
- Validate every assignment's config (fail the whole run on any error)
- Resolve attribution per assigned promoter
- Calculate each PayoutResult
- Summarise totals per currency

and reporting over many runs via the aggregator.

All operations produce typed results. Configuration errors are returned
to the caller as a failed ServiceResult; they are never replaced by a
default and no partial payouts are returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Sequence

from loguru import logger

from promoter_commission.compensation.aggregator import (
    PayoutAggregator,
    totals_by_currency,
)
from promoter_commission.compensation.attribution import AttributionResolver
from promoter_commission.compensation.engine import CommissionEngine
from promoter_commission.compensation.validation import validate_config
from promoter_commission.errors import CommissionError
from promoter_commission.models.attribution import Registration, TableBooking
from promoter_commission.models.commission import PromoterAssignment
from promoter_commission.models.payout import GroupBy, PayoutResult
from promoter_commission.policy.resolver import PolicyResolver


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class PayoutService:
    """Unified payout facade.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = PayoutService(resolver)

        result = service.compute_event_payouts(
            event_id, assignments, registrations, table_bookings,
        )
        if result.success:
            payouts = result.data["payouts"]

        report = service.summarize(all_payouts, GroupBy.PROMOTER_TREE, parents)
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver
        self._attribution = AttributionResolver(resolver)
        self._engine = CommissionEngine(resolver)

    def compute_event_payouts(
        self,
        event_id: str,
        assignments: Sequence[PromoterAssignment],
        registrations: Iterable[Registration],
        table_bookings: Iterable[TableBooking],
        event_date: Optional[date] = None,
    ) -> ServiceResult:
        """Compute payouts for every assigned promoter at one event.

        Attributed registrations or bookings of promoters without an
        assignment earn nothing and are reported under
        ``data["unassigned_promoters"]``.
        """
        if not event_id:
            return ServiceResult(success=False, errors=["event_id is required"])

        seen: set[str] = set()
        for assignment in assignments:
            if assignment.promoter_id in seen:
                return ServiceResult(
                    success=False,
                    errors=[f"Duplicate assignment for promoter {assignment.promoter_id}"],
                )
            seen.add(assignment.promoter_id)

        # Validate everything before calculating anything
        errors: list[str] = []
        for assignment in assignments:
            try:
                validate_config(assignment.config)
                self._resolver.minor_units(assignment.config.currency)
            except CommissionError as exc:
                errors.append(f"{assignment.promoter_id}: {exc}")
        if errors:
            for error in errors:
                logger.warning(f"Rejected commission config for event {event_id}: {error}")
            return ServiceResult(success=False, errors=errors)

        attributions = self._attribution.resolve_event(
            event_id, registrations, table_bookings, event_date,
        )

        payouts: list[PayoutResult] = []
        for assignment in assignments:
            attribution = attributions.get(assignment.promoter_id)
            if attribution is None:
                attribution = self._attribution.resolve(
                    event_id, assignment.promoter_id, (), (), event_date,
                )
            payouts.append(self._engine.calculate(
                assignment.config, attribution, assignment.manual_adjustment,
            ))

        unassigned = sorted(set(attributions) - seen)
        if unassigned:
            logger.info(
                f"Event {event_id}: {len(unassigned)} credited promoters have no assignment"
            )

        totals = totals_by_currency(payouts)
        logger.info(
            f"Payout run for event {event_id}: {len(payouts)} promoters, "
            + ", ".join(f"{cur} {amount}" for cur, amount in totals.items())
        )
        return ServiceResult(
            success=True,
            data={
                "event_id": event_id,
                "payouts": payouts,
                "totals_by_currency": totals,
                "unassigned_promoters": unassigned,
            },
        )

    def summarize(
        self,
        results: Iterable[PayoutResult],
        group_by: GroupBy = GroupBy.PROMOTER,
        parents: Optional[Mapping[str, Optional[str]]] = None,
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> ServiceResult:
        """Aggregate payout results for reporting."""
        aggregator = PayoutAggregator(parents)
        try:
            rows = aggregator.aggregate(results, group_by, since=since, until=until)
        except CommissionError as exc:
            logger.warning(f"Aggregation failed: {exc}")
            return ServiceResult(success=False, errors=[str(exc)])
        return ServiceResult(success=True, data={"rows": rows})
