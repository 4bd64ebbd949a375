from collections import Counter
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, Optional

from src.application.repositories import AbstractTicketRepository
from src.domain.common import VehicleClass
from src.domain.entities import Stats, Ticket


def compute_stats(tickets: Iterable[Ticket], total_spots: int, now: datetime, tz: tzinfo = timezone.utc) -> Stats:
    """Fold the ticket collection into summary figures.

    ``today_transactions`` counts tickets whose entry falls on the same calendar day
    as ``now`` in the facility time zone, whether or not they have exited.
    """
    today = now.astimezone(tz).date()
    occupied_by_class = Counter()
    today_transactions = 0
    total_revenue = 0

    for ticket in tickets:
        if ticket.is_active:
            occupied_by_class[ticket.vehicle_class] += 1
        else:
            total_revenue += ticket.fee
        if ticket.entry_time.astimezone(tz).date() == today:
            today_transactions += 1

    return Stats(
        total_spots=total_spots,
        occupied_spots=sum(occupied_by_class.values()),
        today_transactions=today_transactions,
        total_revenue=total_revenue,
        occupied_by_class={vehicle_class: occupied_by_class[vehicle_class] for vehicle_class in VehicleClass},
    )


class AnalyticsService:
    def __init__(self, ticket_repo: AbstractTicketRepository, total_spots: int, tz: Optional[tzinfo] = None):
        self.ticket_repo = ticket_repo
        self.total_spots = total_spots
        self.tz = tz or timezone.utc

    def compute(self, tickets: Iterable[Ticket], now: datetime) -> Stats:
        return compute_stats(tickets, self.total_spots, now, self.tz)

    def get_stats(self, now: datetime) -> Stats:
        return self.compute(self.ticket_repo.snapshot(), now)

    def get_revenue_by_class(self) -> Dict[VehicleClass, int]:
        revenue = {vehicle_class: 0 for vehicle_class in VehicleClass}
        for ticket in self.ticket_repo.snapshot():
            if not ticket.is_active:
                revenue[ticket.vehicle_class] += ticket.fee
        return revenue

    def get_average_duration_hours(self) -> float:
        """Average real stay length of completed tickets, in hours."""
        durations = [
            (ticket.exit_time - ticket.entry_time).total_seconds() / 3600
            for ticket in self.ticket_repo.snapshot()
            if not ticket.is_active
        ]
        avg_hours = sum(durations) / len(durations) if durations else 0.0
        return round(avg_hours, 2)
