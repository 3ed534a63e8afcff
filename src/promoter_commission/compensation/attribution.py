"""Attribution resolver — turns an event's registrations and table
bookings into the per-promoter counts the calculator needs.

Pure transformation of the provided collections. There is no
re-attribution or tie-breaking: each registration is credited to the
promoter recorded on it, or to nobody.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

from loguru import logger

from promoter_commission.models.attribution import (
    AttributionInput,
    BookingLine,
    Registration,
    TableBooking,
)
from promoter_commission.policy.resolver import PolicyResolver


class AttributionResolver:
    """Resolves per-promoter attribution for one event.

    Usage:
        attribution = AttributionResolver(resolver)
        counts = attribution.resolve(event_id, promoter_id, registrations, bookings)
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._eligible_statuses = resolver.eligible_booking_statuses()

    def resolve(
        self,
        event_id: str,
        promoter_id: str,
        registrations: Iterable[Registration],
        table_bookings: Iterable[TableBooking],
        event_date: Optional[date] = None,
    ) -> AttributionInput:
        """Compute the AttributionInput for one promoter at one event.

        Records belonging to other events are ignored. Empty inputs give
        an all-zero result.
        """
        guest_count = 0
        checked_in_count = 0
        for registration in registrations:
            if registration.event_id != event_id:
                continue
            if registration.referral_promoter_id != promoter_id:
                continue
            guest_count += 1
            if registration.is_checked_in:
                checked_in_count += 1

        lines = tuple(
            _booking_line(booking)
            for booking in table_bookings
            if booking.event_id == event_id
            and booking.responsible_promoter_id == promoter_id
            and self._earns_commission(booking)
        )

        logger.debug(
            f"Attribution {event_id}/{promoter_id}: {guest_count} guests, "
            f"{checked_in_count} checked in, {len(lines)} bookings"
        )
        return AttributionInput(
            event_id=event_id,
            promoter_id=promoter_id,
            guest_count=guest_count,
            checked_in_count=checked_in_count,
            table_bookings=lines,
            event_date=event_date,
        )

    def resolve_event(
        self,
        event_id: str,
        registrations: Iterable[Registration],
        table_bookings: Iterable[TableBooking],
        event_date: Optional[date] = None,
    ) -> Dict[str, AttributionInput]:
        """Resolve attribution for every promoter credited at the event.

        Returns a dict keyed by promoter id, in order of first appearance.
        Promoters with only table bookings, or only referrals, are included.
        """
        registrations = list(registrations)
        table_bookings = list(table_bookings)

        promoter_ids: List[str] = []
        for registration in registrations:
            pid = registration.referral_promoter_id
            if registration.event_id == event_id and pid and pid not in promoter_ids:
                promoter_ids.append(pid)
        for booking in table_bookings:
            pid = booking.responsible_promoter_id
            if (
                booking.event_id == event_id
                and pid
                and pid not in promoter_ids
                and self._earns_commission(booking)
            ):
                promoter_ids.append(pid)

        return {
            pid: self.resolve(event_id, pid, registrations, table_bookings, event_date)
            for pid in promoter_ids
        }

    def _earns_commission(self, booking: TableBooking) -> bool:
        return booking.status in self._eligible_statuses


def _booking_line(booking: TableBooking) -> BookingLine:
    base, source = booking.commission_base()
    return BookingLine(
        booking_id=booking.booking_id,
        revenue=base,
        deposit=booking.deposit,
        spend_source=source,
        locked=booking.locked,
    )
