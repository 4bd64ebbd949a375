import threading
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo
from loguru import logger

from src.application.repositories import AbstractTicketRepository
from src.application.services.analytics_service import AnalyticsService
from src.domain.capacity import can_admit
from src.domain.common import VehicleClass
from src.domain.entities import FacilitySnapshot, FeeQuote, Stats, Ticket
from src.domain.exceptions import CapacityExceeded, InvalidTicketState, TicketNotFound, ValidationError
from src.domain.fees import billable_hours, compute_fee
from src.domain.rates import RateTable


def normalize_plate(plate: str) -> str:
    if not isinstance(plate, str):
        raise ValidationError("License plate must be a string")
    normalized = plate.strip().upper()
    if not normalized:
        raise ValidationError("License plate cannot be empty")
    return normalized


class ParkingService:
    """Check-in / check-out orchestration over the ticket store.

    This is the only component that mutates the store. Both mutations run under a
    single lock so the occupancy check and the insert happen atomically, and two
    checkouts of the same ticket cannot both succeed.
    """

    def __init__(
        self,
        ticket_repo: AbstractTicketRepository,
        rate_table: Optional[RateTable] = None,
        total_spots: int = 50,
        tz: Optional[tzinfo] = None,
    ):
        self.ticket_repo = ticket_repo
        self.rate_table = rate_table or RateTable()
        self.total_spots = total_spots
        self.analytics = AnalyticsService(ticket_repo, total_spots, tz)
        self._mutation_lock = threading.Lock()

    @classmethod
    def from_settings(cls, ticket_repo: AbstractTicketRepository, settings) -> "ParkingService":
        return cls(
            ticket_repo=ticket_repo,
            rate_table=RateTable.from_settings(settings),
            total_spots=settings.TOTAL_SPOTS,
            tz=ZoneInfo(settings.FACILITY_TIMEZONE),
        )

    @staticmethod
    def _resolve_now(now: Optional[datetime]) -> datetime:
        if now is None:
            return datetime.now(timezone.utc)
        if now.tzinfo is None:
            raise ValidationError("Timestamps must be timezone-aware")
        return now

    def check_in(self, plate: str, vehicle_class: VehicleClass, now: Optional[datetime] = None) -> Ticket:
        plate = normalize_plate(plate)
        try:
            vehicle_class = VehicleClass(vehicle_class)
        except ValueError:
            raise ValidationError(f"Unknown vehicle class: {vehicle_class}") from None
        now = self._resolve_now(now)

        with self._mutation_lock:
            occupied = self.ticket_repo.count_active()
            if not can_admit(occupied, self.total_spots):
                logger.warning(f"Check-in refused for {plate}: {occupied}/{self.total_spots} spots occupied")
                raise CapacityExceeded(occupied, self.total_spots)
            ticket = self.ticket_repo.insert(plate, vehicle_class, now)

        logger.info(f"Vehicle {plate} ({vehicle_class.value}) checked in with ticket {ticket.id}")
        return ticket

    def _get_active_ticket(self, ticket_id: int) -> Ticket:
        ticket = self.ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFound(ticket_id)
        if not ticket.is_active:
            raise InvalidTicketState(ticket_id)
        return ticket

    def quote_checkout(self, ticket_id: int, now: Optional[datetime] = None) -> FeeQuote:
        """Preview duration and fee for a checkout without recording it."""
        now = self._resolve_now(now)
        ticket = self._get_active_ticket(ticket_id)
        return FeeQuote(
            ticket_id=ticket.id,
            plate=ticket.plate,
            vehicle_class=ticket.vehicle_class,
            entry_time=ticket.entry_time,
            exit_time=now,
            duration_hours=billable_hours(ticket.entry_time, now),
            fee=compute_fee(ticket.entry_time, now, ticket.vehicle_class, self.rate_table),
        )

    def check_out(self, ticket_id: int, now: Optional[datetime] = None) -> Ticket:
        now = self._resolve_now(now)

        with self._mutation_lock:
            try:
                ticket = self._get_active_ticket(ticket_id)
            except InvalidTicketState:
                logger.warning(f"Checkout refused: ticket {ticket_id} is already completed")
                raise
            fee = compute_fee(ticket.entry_time, now, ticket.vehicle_class, self.rate_table)
            ticket = self.ticket_repo.update_on_checkout(ticket_id, now, fee)

        logger.info(f"Vehicle {ticket.plate} checked out from ticket {ticket.id}. Fee: {fee}")
        return ticket

    def get_ticket(self, ticket_id: int) -> Ticket:
        ticket = self.ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFound(ticket_id)
        return ticket

    def list_active(self) -> List[Ticket]:
        """Active tickets, most recent check-in first."""
        return [ticket for ticket in reversed(self.ticket_repo.snapshot()) if ticket.is_active]

    def list_completed(self) -> List[Ticket]:
        """Completed tickets, most recent checkout first."""
        completed = [ticket for ticket in reversed(self.ticket_repo.snapshot()) if not ticket.is_active]
        return sorted(completed, key=lambda ticket: ticket.exit_time, reverse=True)

    def read_stats(self, now: Optional[datetime] = None) -> Stats:
        return self.analytics.get_stats(self._resolve_now(now))

    def snapshot(self, now: Optional[datetime] = None) -> FacilitySnapshot:
        now = self._resolve_now(now)
        tickets = self.ticket_repo.snapshot()
        return FacilitySnapshot(
            taken_at=now,
            tickets=tuple(reversed(tickets)),
            stats=self.analytics.compute(tickets, now),
        )


def seed_demo_tickets(service: ParkingService, now: Optional[datetime] = None) -> List[Ticket]:
    """Populate an empty facility with one finished stay and up to two parked vehicles.

    Demo vehicles that no longer fit in the facility are skipped.
    """
    now = now or datetime.now(timezone.utc)
    demo_stays = [
        ("F 9012 GH", VehicleClass.CAR, timedelta(hours=5), True),
        ("B 1234 CD", VehicleClass.CAR, timedelta(hours=2), False),
        ("D 5678 EF", VehicleClass.MOTORCYCLE, timedelta(minutes=30), False),
    ]

    seeded = []
    for plate, vehicle_class, stay, finished in demo_stays:
        if not can_admit(service.ticket_repo.count_active(), service.total_spots):
            logger.warning(f"Demo data trimmed: no spot left for {plate}")
            break
        ticket = service.check_in(plate, vehicle_class, now - stay)
        if finished:
            ticket = service.check_out(ticket.id, now)
        seeded.append(ticket)

    logger.debug(f"Seeded {len(seeded)} demo tickets")
    return seeded
