import asyncio
import base64
import re
from typing import Optional, Tuple, Union

from langchain_core.messages import HumanMessage
from loguru import logger

from src.config.settings_env import settings
from src.infrastructure.api.schemas.parking import PlateReading
from src.infrastructure.ml_agents.llm import build_chat_model


DATA_URL_PATTERN = re.compile(r"^data:(image/(?:png|jpeg|jpg|webp));base64,")

RECOGNITION_PROMPT = """Analyze this image of a vehicle.
1. Identify the license plate number. Remove spaces and special characters from the plate.
2. Identify the vehicle type (CAR, MOTORCYCLE, or TRUCK).
3. Give a confidence score between 0 and 1."""


def split_data_url(image: str) -> Tuple[str, str]:
    """Return (mime type, bare base64 payload) for a data URL or raw base64 string."""
    match = DATA_URL_PATTERN.match(image)
    if not match:
        return "image/jpeg", image
    mime_type = match.group(1).replace("image/jpg", "image/jpeg")
    return mime_type, image[match.end():]


class PlateRecognizer:
    """Reads the license plate and vehicle type from a photo using a vision model.

    Every failure, including timeouts and unparseable output, is logged and reported
    as ``None`` so callers fall back to manual entry.
    """

    def __init__(self, llm=None, timeout: Optional[float] = None, low_confidence_threshold: Optional[float] = None):
        self.llm = llm or build_chat_model(settings.OPENAI_VISION_MODEL_NAME, max_tokens=300)
        self.timeout = timeout or settings.RECOGNITION_TIMEOUT_SECONDS
        if low_confidence_threshold is None:
            low_confidence_threshold = settings.LOW_CONFIDENCE_THRESHOLD
        self.low_confidence_threshold = low_confidence_threshold

    def _build_message(self, image: Union[bytes, str]) -> HumanMessage:
        if isinstance(image, bytes):
            mime_type, payload = "image/jpeg", base64.b64encode(image).decode("ascii")
        else:
            mime_type, payload = split_data_url(image.strip())
        return HumanMessage(content=[
            {"type": "text", "text": RECOGNITION_PROMPT},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{payload}"}},
        ])

    async def scan(self, image: Union[bytes, str]) -> Optional[PlateReading]:
        if not image:
            return None

        structured_llm = self.llm.with_structured_output(PlateReading)
        try:
            reading = await asyncio.wait_for(
                structured_llm.ainvoke([self._build_message(image)]),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Plate recognition timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.error(f"OCR Error: {e}")
            return None

        if isinstance(reading, dict):
            reading = PlateReading.model_validate(reading)
        if reading is None or not reading.license_plate:
            logger.info("Could not detect vehicle info clearly")
            return None

        logger.debug(f"Recognized plate {reading.license_plate} ({reading.vehicle_type.value}), confidence {reading.confidence}")
        return reading
