import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

from src.application.services.parking_service import ParkingService
from src.config.settings_env import Settings
from src.domain.rates import RateTable
from src.infrastructure.persistence.in_memory_repositories import InMemoryTicketRepository


JAKARTA = ZoneInfo("Asia/Jakarta")


@pytest.fixture
def base_time():
    """10:00 local time in the facility (03:00 UTC)."""
    return datetime(2024, 5, 14, 10, 0, tzinfo=JAKARTA)


@pytest.fixture
def test_settings():
    """Provide test settings."""
    return Settings(
        _env_file=None,
        DEV_MODE=False,
        TOTAL_SPOTS=3,
        FACILITY_TIMEZONE="Asia/Jakarta",
        OPENAI_MODEL_NAME="ollama/test-model",
        OPENAI_VISION_MODEL_NAME="ollama/test-vision",
    )


@pytest.fixture
def ticket_repo():
    return InMemoryTicketRepository()


@pytest.fixture
def parking_service(ticket_repo):
    """A ParkingService with the default rates, 3 spots and Jakarta local time."""
    return ParkingService(ticket_repo=ticket_repo, rate_table=RateTable(), total_spots=3, tz=JAKARTA)


@pytest.fixture
def parked_car(parking_service, base_time):
    return parking_service.check_in("b 1234 cd", "CAR", base_time)


@pytest.fixture
def mock_llm():
    """Chat model double exposing the async surface the ml agents use."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock()
    structured = MagicMock()
    structured.ainvoke = AsyncMock()
    llm.with_structured_output.return_value = structured
    llm.structured = structured
    return llm
