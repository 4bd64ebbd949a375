class ParkingError(Exception):
    """Base class for failures raised by the parking core."""


class ValidationError(ParkingError, ValueError):
    """Malformed input to a core operation, rejected before any mutation."""


class CapacityExceeded(ParkingError):
    def __init__(self, occupied_spots: int, total_spots: int):
        self.occupied_spots = occupied_spots
        self.total_spots = total_spots
        super().__init__(f"Parking is full ({occupied_spots}/{total_spots} spots occupied)")


class TicketNotFound(ParkingError, LookupError):
    def __init__(self, ticket_id: int):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} not found")


class InvalidTicketState(ParkingError):
    def __init__(self, ticket_id: int, message: str = None):
        self.ticket_id = ticket_id
        super().__init__(message or f"Ticket {ticket_id} is already completed")


class RateConfigurationError(ParkingError):
    """A vehicle class has no rate schedule. Indicates a programming error."""
