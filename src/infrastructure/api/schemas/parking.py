from pydantic import BaseModel, Field, field_validator
from datetime import datetime, tzinfo
from typing import Optional, List, Dict
import re

from src.domain.common import VehicleClass, TicketStatus
from src.domain.entities import FacilitySnapshot, FeeQuote, Stats, Ticket


TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class CheckInRequest(BaseModel):
    # The service normalizes the plate; it is only validated for length here.
    plate: str = Field(..., min_length=1, max_length=20)
    vehicle_class: VehicleClass = VehicleClass.CAR


class TicketResponse(BaseModel):
    id: int
    plate: str
    vehicle_class: VehicleClass
    entry_time: datetime
    exit_time: Optional[datetime] = None
    fee: Optional[int] = None
    status: TicketStatus


class FeeQuoteResponse(BaseModel):
    ticket_id: int
    plate: str
    vehicle_class: VehicleClass
    entry_time: datetime
    exit_time: datetime
    duration_hours: int
    fee: int

    @classmethod
    def from_quote(cls, quote: FeeQuote) -> "FeeQuoteResponse":
        return cls(
            ticket_id=quote.ticket_id,
            plate=quote.plate,
            vehicle_class=quote.vehicle_class,
            entry_time=quote.entry_time,
            exit_time=quote.exit_time,
            duration_hours=quote.duration_hours,
            fee=quote.fee,
        )


class StatsResponse(BaseModel):
    total_spots: int
    occupied_spots: int
    available_spots: int
    occupancy_rate: float
    today_transactions: int
    total_revenue: int
    occupied_by_class: Dict[VehicleClass, int]

    @classmethod
    def from_stats(cls, stats: Stats) -> "StatsResponse":
        return cls(
            total_spots=stats.total_spots,
            occupied_spots=stats.occupied_spots,
            available_spots=stats.available_spots,
            occupancy_rate=stats.occupancy_rate,
            today_transactions=stats.today_transactions,
            total_revenue=stats.total_revenue,
            occupied_by_class=dict(stats.occupied_by_class),
        )


class PlateReading(BaseModel):
    """Structured output requested from the vision model."""

    license_plate: str = Field(..., description="License plate number without spaces or special characters")
    vehicle_type: VehicleClass = Field(..., description="Vehicle type: CAR, MOTORCYCLE or TRUCK")
    confidence: Optional[float] = Field(default=None, ge=0, le=1, description="Confidence score between 0 and 1")

    @field_validator('license_plate')
    def clean_license_plate(cls, v):  # pylint: disable=no-self-argument
        return re.sub(r"[^0-9A-Za-z]", "", v).upper()

    @field_validator('vehicle_type', mode='before')
    def upper_vehicle_type(cls, v):  # pylint: disable=no-self-argument
        return v.strip().upper() if isinstance(v, str) else v


class RecognitionRequest(BaseModel):
    # Raw base64 or a data URL as produced by a browser FileReader.
    image: str = Field(..., min_length=1)


class AutofillSuggestion(BaseModel):
    """Pre-filled check-in fields from a recognition result.

    The operator may override both fields before checking in. ``low_confidence``
    is informational only and never blocks the suggestion.

    Recognized plates come without spaces or punctuation (``B1234CD``) while typed
    plates keep them (``B 1234 CD``); check-in stores whichever form it is given.
    """

    plate: str
    vehicle_class: VehicleClass
    confidence: Optional[float] = None
    low_confidence: bool = False

    @classmethod
    def from_reading(cls, reading: PlateReading, threshold: float) -> "AutofillSuggestion":
        return cls(
            plate=reading.license_plate,
            vehicle_class=reading.vehicle_type,
            confidence=reading.confidence,
            low_confidence=reading.confidence is not None and reading.confidence < threshold,
        )


class RecognitionResponse(BaseModel):
    suggestion: Optional[AutofillSuggestion] = None
    message: Optional[str] = None


class AssistantQuery(BaseModel):
    question: str = Field(..., min_length=1, max_length=1000)

    @field_validator('question')
    def strip_question(cls, v):  # pylint: disable=no-self-argument
        v = v.strip()
        if not v:
            raise ValueError("Question cannot be blank")
        return v


class AssistantAnswer(BaseModel):
    question: str
    answer: str


class SnapshotTicket(BaseModel):
    id: int
    plate: str
    vehicle_class: VehicleClass
    status: TicketStatus
    entry_time: str
    exit_time: Optional[str] = None
    fee: Optional[int] = None


class SnapshotPayload(BaseModel):
    """JSON-ready snapshot with times rendered in the facility's local time."""

    taken_at: str
    tickets: List[SnapshotTicket]
    stats: StatsResponse

    @classmethod
    def from_snapshot(cls, snapshot: FacilitySnapshot, tz: tzinfo) -> "SnapshotPayload":
        def local(value: Optional[datetime]) -> Optional[str]:
            return value.astimezone(tz).strftime(TIME_FORMAT) if value else None

        return cls(
            taken_at=local(snapshot.taken_at),
            tickets=[
                SnapshotTicket(
                    id=ticket.id,
                    plate=ticket.plate,
                    vehicle_class=ticket.vehicle_class,
                    status=ticket.status,
                    entry_time=local(ticket.entry_time),
                    exit_time=local(ticket.exit_time),
                    fee=ticket.fee,
                )
                for ticket in snapshot.tickets
            ],
            stats=StatsResponse.from_stats(snapshot.stats),
        )


def ticket_to_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse(
        id=ticket.id,
        plate=ticket.plate,
        vehicle_class=ticket.vehicle_class,
        entry_time=ticket.entry_time,
        exit_time=ticket.exit_time,
        fee=ticket.fee,
        status=ticket.status,
    )
