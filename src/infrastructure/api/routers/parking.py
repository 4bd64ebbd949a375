from fastapi import APIRouter, Depends, HTTPException, Request
from typing import List, Optional

from src.application.services.parking_service import ParkingService
from src.domain.exceptions import CapacityExceeded, InvalidTicketState, TicketNotFound, ValidationError
from src.infrastructure.api.schemas.parking import (
    AssistantAnswer, AssistantQuery, AutofillSuggestion, CheckInRequest, FeeQuoteResponse,
    RecognitionRequest, RecognitionResponse, StatsResponse, TicketResponse, ticket_to_response
)
from src.infrastructure.ml_agents.parking_agent import FALLBACK_ANSWER, ParkingAssistant
from src.infrastructure.ml_agents.plate_recognizer import PlateRecognizer

router = APIRouter(prefix="/api/parking", tags=["parking"])

NO_AUTOFILL_MESSAGE = "Could not detect vehicle info clearly. Please try again or enter manually."


def get_parking_service(request: Request) -> ParkingService:
    return request.app.state.parking_service


def get_plate_recognizer(request: Request) -> Optional[PlateRecognizer]:
    return request.app.state.plate_recognizer


def get_parking_assistant(request: Request) -> Optional[ParkingAssistant]:
    return request.app.state.parking_assistant


def _raise_http(e: Exception):
    if isinstance(e, ValidationError):
        raise HTTPException(status_code=422, detail=str(e))
    if isinstance(e, TicketNotFound):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (CapacityExceeded, InvalidTicketState)):
        raise HTTPException(status_code=409, detail=str(e))
    raise e


@router.post("/tickets", response_model=TicketResponse, status_code=201)
def check_in(entry: CheckInRequest, service: ParkingService = Depends(get_parking_service)):
    try:
        return ticket_to_response(service.check_in(entry.plate, entry.vehicle_class))
    except (ValidationError, CapacityExceeded) as e:
        _raise_http(e)


@router.get("/tickets/active", response_model=List[TicketResponse])
def list_active(service: ParkingService = Depends(get_parking_service)):
    return [ticket_to_response(ticket) for ticket in service.list_active()]


@router.get("/tickets/completed", response_model=List[TicketResponse])
def list_completed(service: ParkingService = Depends(get_parking_service)):
    return [ticket_to_response(ticket) for ticket in service.list_completed()]


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
def get_ticket(ticket_id: int, service: ParkingService = Depends(get_parking_service)):
    try:
        return ticket_to_response(service.get_ticket(ticket_id))
    except TicketNotFound as e:
        _raise_http(e)


@router.get("/tickets/{ticket_id}/quote", response_model=FeeQuoteResponse)
def quote_checkout(ticket_id: int, service: ParkingService = Depends(get_parking_service)):
    try:
        return FeeQuoteResponse.from_quote(service.quote_checkout(ticket_id))
    except (TicketNotFound, InvalidTicketState, ValidationError) as e:
        _raise_http(e)


@router.post("/tickets/{ticket_id}/checkout", response_model=TicketResponse)
def check_out(ticket_id: int, service: ParkingService = Depends(get_parking_service)):
    try:
        return ticket_to_response(service.check_out(ticket_id))
    except (TicketNotFound, InvalidTicketState, ValidationError) as e:
        _raise_http(e)


@router.get("/stats", response_model=StatsResponse)
def read_stats(service: ParkingService = Depends(get_parking_service)):
    return StatsResponse.from_stats(service.read_stats())


@router.post("/recognize", response_model=RecognitionResponse)
async def recognize(
    request_data: RecognitionRequest,
    recognizer: Optional[PlateRecognizer] = Depends(get_plate_recognizer),
):
    if recognizer is None:
        return RecognitionResponse(message=NO_AUTOFILL_MESSAGE)
    reading = await recognizer.scan(request_data.image)
    if reading is None:
        return RecognitionResponse(message=NO_AUTOFILL_MESSAGE)
    threshold = recognizer.low_confidence_threshold
    return RecognitionResponse(suggestion=AutofillSuggestion.from_reading(reading, threshold))


@router.post("/assistant/ask", response_model=AssistantAnswer)
async def ask_assistant(
    query: AssistantQuery,
    service: ParkingService = Depends(get_parking_service),
    assistant: Optional[ParkingAssistant] = Depends(get_parking_assistant),
):
    if assistant is None:
        return AssistantAnswer(question=query.question, answer=FALLBACK_ANSWER)
    answer = await assistant.ask(query.question, service.snapshot())
    return AssistantAnswer(question=query.question, answer=answer)
