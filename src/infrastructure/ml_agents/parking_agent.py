import asyncio
from datetime import timezone, tzinfo
from typing import Optional

from loguru import logger

from src.config.settings_env import settings
from src.domain.entities import FacilitySnapshot
from src.infrastructure.api.schemas.parking import SnapshotPayload
from src.infrastructure.ml_agents.llm import build_chat_model


FALLBACK_ANSWER = "Sorry, I am having trouble connecting to the AI service right now."
EMPTY_ANSWER = "I couldn't generate a response."

PROMPT_TEMPLATE = """You are a helpful Parking Management Assistant.
Here is the current parking facility data in JSON format:
{data_context}

User Question: "{question}"

Answer briefly and accurately based on the data provided. If you calculate revenue, explain the math briefly."""


class ParkingAssistant:
    """Answers free-text questions about a point-in-time facility snapshot.

    The assistant only reads the snapshot it is given; it never touches the ticket
    store.
    """

    def __init__(self, llm=None, timeout: Optional[float] = None, tz: Optional[tzinfo] = None):
        self.llm = llm or build_chat_model(settings.OPENAI_MODEL_NAME)
        self.timeout = timeout or settings.ASSISTANT_TIMEOUT_SECONDS
        self.tz = tz or timezone.utc

    def build_prompt(self, question: str, snapshot: FacilitySnapshot) -> str:
        payload = SnapshotPayload.from_snapshot(snapshot, self.tz)
        return PROMPT_TEMPLATE.format(data_context=payload.model_dump_json(), question=question)

    async def ask(self, question: str, snapshot: FacilitySnapshot) -> str:
        prompt = self.build_prompt(question, snapshot)
        try:
            response = await asyncio.wait_for(self.llm.ainvoke(prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Assistant timed out after {self.timeout}s")
            return FALLBACK_ANSWER
        except Exception as e:
            logger.error(f"Chat Error: {e}")
            return FALLBACK_ANSWER

        answer = getattr(response, "content", response)
        if not isinstance(answer, str) or not answer.strip():
            return EMPTY_ANSWER
        return answer.strip()
