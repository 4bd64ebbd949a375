from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Tuple

from src.domain.common import VehicleClass
from src.domain.entities import Ticket


class AbstractTicketRepository(ABC):
    @abstractmethod
    def insert(self, plate: str, vehicle_class: VehicleClass, entry_time: datetime) -> Ticket:
        pass

    @abstractmethod
    def update_on_checkout(self, ticket_id: int, exit_time: datetime, fee: int) -> Ticket:
        pass

    @abstractmethod
    def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        pass

    @abstractmethod
    def snapshot(self) -> Tuple[Ticket, ...]:
        pass

    @abstractmethod
    def count_active(self) -> int:
        pass
