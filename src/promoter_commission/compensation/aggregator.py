"""Payout aggregator — rolls per-event payouts up for reporting.

Totals are summed per currency; there is no cross-currency conversion.
Promoter-tree grouping credits each result to its promoter AND to every
ancestor in the promoter directory, so a parent's bucket includes its
descendants while each child's bucket stays its own. Underlying
PayoutResults are never mutated.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Set

from loguru import logger

from promoter_commission.errors import HierarchyError
from promoter_commission.models.payout import AggregateRow, GroupBy, PayoutResult


class PayoutAggregator:
    """Groups PayoutResults by promoter or promoter hierarchy.

    Usage:
        aggregator = PayoutAggregator(parents={"child": "parent"})
        rows = aggregator.aggregate(results, GroupBy.PROMOTER_TREE)

    ``parents`` maps promoter id -> parent promoter id (or None). It is
    only consulted for promoter-tree grouping.
    """

    def __init__(self, parents: Optional[Mapping[str, Optional[str]]] = None) -> None:
        self._parents: Dict[str, Optional[str]] = dict(parents or {})

    def aggregate(
        self,
        results: Iterable[PayoutResult],
        group_by: GroupBy = GroupBy.PROMOTER,
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> List[AggregateRow]:
        """Aggregate results into one row per group, sorted by group key.

        When ``since`` or ``until`` is given, only results whose
        event_date lies in the closed range are included; results
        without an event_date are then excluded.
        """
        group_by = GroupBy(group_by)
        totals: Dict[str, Dict[str, Decimal]] = {}
        payable: Dict[str, Dict[str, Decimal]] = {}
        events: Dict[str, Set[str]] = {}

        for result in results:
            if not self._in_range(result, since, until):
                continue
            if group_by == GroupBy.PROMOTER_TREE:
                keys = self.lineage(result.promoter_id)
            else:
                keys = [result.promoter_id]
            for key in keys:
                bucket = totals.setdefault(key, {})
                bucket[result.currency] = (
                    bucket.get(result.currency, Decimal("0")) + result.total
                )
                pay_bucket = payable.setdefault(key, {})
                pay_amount = (
                    result.payable_total
                    if result.payable_total is not None
                    else result.total
                )
                pay_bucket[result.currency] = (
                    pay_bucket.get(result.currency, Decimal("0")) + pay_amount
                )
                events.setdefault(key, set()).add(result.event_id)

        rows = [
            AggregateRow(
                group_key=key,
                totals_by_currency=dict(sorted(totals[key].items())),
                event_count=len(events[key]),
                payable_by_currency=dict(sorted(payable[key].items())),
            )
            for key in sorted(totals)
        ]
        logger.debug(f"Aggregated into {len(rows)} {group_by.value} groups")
        return rows

    def lineage(self, promoter_id: str) -> List[str]:
        """Return [promoter_id, parent, grandparent, ...].

        Raises HierarchyError if the parent links form a cycle.
        """
        chain = [promoter_id]
        seen = {promoter_id}
        current = self._parents.get(promoter_id)
        while current:
            if current in seen:
                raise HierarchyError(
                    f"Cycle in promoter hierarchy: {' -> '.join(chain + [current])}"
                )
            chain.append(current)
            seen.add(current)
            current = self._parents.get(current)
        return chain

    @staticmethod
    def _in_range(
        result: PayoutResult, since: Optional[date], until: Optional[date]
    ) -> bool:
        if since is None and until is None:
            return True
        if result.event_date is None:
            return False
        if since is not None and result.event_date < since:
            return False
        if until is not None and result.event_date > until:
            return False
        return True


def totals_by_currency(results: Iterable[PayoutResult]) -> Dict[str, Decimal]:
    """Sum ``total`` per currency across results."""
    out: Dict[str, Decimal] = {}
    for result in results:
        out[result.currency] = out.get(result.currency, Decimal("0")) + result.total
    return dict(sorted(out.items()))
