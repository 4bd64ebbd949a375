from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Optional, Tuple

from src.domain.common import VehicleClass, TicketStatus


@dataclass(frozen=True)
class RateSchedule:
    first_hour_fee: int
    hourly_fee: int


@dataclass(frozen=True)
class Ticket:
    """One vehicle's stay, from entry to (optional) exit.

    Tickets are immutable. Checkout produces a new Ticket via ``complete`` and the
    store swaps it in, so ``exit_time`` and ``fee`` are always observed together.
    ``status`` is derived from ``exit_time`` and cannot be assigned.
    """

    id: int
    plate: str
    vehicle_class: VehicleClass
    entry_time: datetime
    exit_time: Optional[datetime] = None
    fee: Optional[int] = None

    def __post_init__(self):
        if (self.exit_time is None) != (self.fee is None):
            raise ValueError("exit_time and fee must be set together")
        if self.exit_time is not None and self.exit_time < self.entry_time:
            raise ValueError("exit_time must not precede entry_time")

    @property
    def status(self) -> TicketStatus:
        return TicketStatus.ACTIVE if self.exit_time is None else TicketStatus.COMPLETED

    @property
    def is_active(self) -> bool:
        return self.exit_time is None

    def complete(self, exit_time: datetime, fee: int) -> "Ticket":
        if not self.is_active:
            raise ValueError(f"Ticket {self.id} is already completed")
        return replace(self, exit_time=exit_time, fee=fee)


@dataclass(frozen=True)
class FeeQuote:
    ticket_id: int
    plate: str
    vehicle_class: VehicleClass
    entry_time: datetime
    exit_time: datetime
    duration_hours: int
    fee: int


@dataclass(frozen=True)
class Stats:
    total_spots: int
    occupied_spots: int
    today_transactions: int
    total_revenue: int
    occupied_by_class: Dict[VehicleClass, int] = field(default_factory=dict)

    @property
    def available_spots(self) -> int:
        return max(self.total_spots - self.occupied_spots, 0)

    @property
    def occupancy_rate(self) -> float:
        if self.total_spots <= 0:
            return 0.0
        return round(self.occupied_spots / self.total_spots * 100, 2)


@dataclass(frozen=True)
class FacilitySnapshot:
    """Read-only, point-in-time view of the facility handed to the assistant."""

    taken_at: datetime
    tickets: Tuple[Ticket, ...]
    stats: Stats
