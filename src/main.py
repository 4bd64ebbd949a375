from zoneinfo import ZoneInfo

from fastapi import FastAPI

from src.application.services.parking_service import ParkingService, seed_demo_tickets
from src.config.settings_env import settings as default_settings
from src.infrastructure.api.routers.parking import router as parking_router
from src.infrastructure.ml_agents.llm import build_chat_model
from src.infrastructure.ml_agents.parking_agent import ParkingAssistant
from src.infrastructure.ml_agents.plate_recognizer import PlateRecognizer
from src.infrastructure.persistence.in_memory_repositories import InMemoryTicketRepository
from src.shared.utils import logger


def create_app(settings=None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title="Parking Facility Console")

    service = ParkingService.from_settings(InMemoryTicketRepository(), settings)
    if settings.SEED_DEMO_DATA:
        seed_demo_tickets(service)
    app.state.parking_service = service

    # Recognition and the assistant are optional helpers; the console runs without them.
    try:
        app.state.plate_recognizer = PlateRecognizer(
            llm=build_chat_model(settings.OPENAI_VISION_MODEL_NAME, settings, max_tokens=300),
            timeout=settings.RECOGNITION_TIMEOUT_SECONDS,
            low_confidence_threshold=settings.LOW_CONFIDENCE_THRESHOLD,
        )
        app.state.parking_assistant = ParkingAssistant(
            llm=build_chat_model(settings.OPENAI_MODEL_NAME, settings),
            timeout=settings.ASSISTANT_TIMEOUT_SECONDS,
            tz=ZoneInfo(settings.FACILITY_TIMEZONE),
        )
    except ValueError as e:
        logger.warning(f"AI features disabled: {e}")
        app.state.plate_recognizer = None
        app.state.parking_assistant = None

    app.include_router(parking_router)
    logger.info(f"Parking console ready with {settings.TOTAL_SPOTS} spots")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host=default_settings.FASTAPI_HOST, port=default_settings.FASTAPI_PORT)
