import itertools
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from src.application.repositories import AbstractTicketRepository
from src.domain.common import VehicleClass
from src.domain.entities import Ticket
from src.domain.exceptions import InvalidTicketState, TicketNotFound


class InMemoryTicketRepository(AbstractTicketRepository):
    """Ordered, in-process store of every ticket ever issued.

    Tickets are frozen, so handing them out never exposes mutable state. Reads take
    the lock only long enough to copy the index, which gives callers a consistent
    point-in-time view.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._order: List[int] = []
        self._tickets: Dict[int, Ticket] = {}

    def insert(self, plate: str, vehicle_class: VehicleClass, entry_time: datetime) -> Ticket:
        with self._lock:
            ticket = Ticket(
                id=next(self._ids),
                plate=plate,
                vehicle_class=vehicle_class,
                entry_time=entry_time,
            )
            self._tickets[ticket.id] = ticket
            self._order.append(ticket.id)
            return ticket

    def update_on_checkout(self, ticket_id: int, exit_time: datetime, fee: int) -> Ticket:
        with self._lock:
            ticket = self._tickets.get(ticket_id)
            if ticket is None:
                raise TicketNotFound(ticket_id)
            if not ticket.is_active:
                raise InvalidTicketState(ticket_id)
            completed = ticket.complete(exit_time, fee)
            self._tickets[ticket_id] = completed
            return completed

    def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        with self._lock:
            return self._tickets.get(ticket_id)

    def snapshot(self) -> Tuple[Ticket, ...]:
        """All tickets in insertion order."""
        with self._lock:
            return tuple(self._tickets[ticket_id] for ticket_id in self._order)

    def count_active(self) -> int:
        with self._lock:
            return sum(1 for ticket in self._tickets.values() if ticket.is_active)

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)
