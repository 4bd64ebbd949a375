from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Development
    DEV_MODE: bool = Field(default=True, description="Enable debug mode")

    # FastAPI
    FASTAPI_HOST: str = Field(default="localhost", description="FastAPI host")
    FASTAPI_PORT: int = Field(default=8080, description="FastAPI port")

    # Facility
    TOTAL_SPOTS: int = Field(default=50, ge=0, description="Total number of parking spots")
    FACILITY_TIMEZONE: str = Field(default="Asia/Jakarta", description="Local time zone used for daily figures")
    SEED_DEMO_DATA: bool = Field(default=False, description="Create demo tickets on startup")

    # Rates, in whole currency units
    CAR_FIRST_HOUR_FEE: int = Field(default=5000, ge=0)
    CAR_HOURLY_FEE: int = Field(default=3000, ge=0)
    MOTORCYCLE_FIRST_HOUR_FEE: int = Field(default=2000, ge=0)
    MOTORCYCLE_HOURLY_FEE: int = Field(default=1000, ge=0)
    TRUCK_FIRST_HOUR_FEE: int = Field(default=10000, ge=0)
    TRUCK_HOURLY_FEE: int = Field(default=5000, ge=0)

    # LLM Configuration
    OPENAI_API_BASE: Optional[str] = Field(default="http://localhost:11434/v1", description="OpenAI API base URL")
    OPENAI_MODEL_NAME: str = Field(default="ollama/qwen2.5:0.5b", description="Model name for the assistant")
    OPENAI_VISION_MODEL_NAME: str = Field(default="ollama/llava", description="Model name for plate recognition")
    OPENAI_API_KEY: str = Field(default="sk-111111111111111111111111111111111111111111111111", description="API key")

    # External calls
    RECOGNITION_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    ASSISTANT_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    LOW_CONFIDENCE_THRESHOLD: float = Field(default=0.6, ge=0, le=1, description="Recognition results below this are flagged")


# Create settings instance
settings = Settings()
