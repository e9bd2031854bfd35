"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    google_vision_api_key: str
    google_vision_url: str = "https://vision.googleapis.com/v1/images:annotate"
    nutritionix_app_id: str
    nutritionix_app_key: str
    nutritionix_base_url: str = "https://trackapi.nutritionix.com/v2"
    supabase_url: str
    supabase_service_key: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    coach_backend_url: str | None = None
    vision_timeout_seconds: float = 20.0
    lookup_timeout_seconds: float = 15.0
    coach_timeout_seconds: float = 30.0
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    conversation_context_turns: int = 10
    conversation_history_turns: int = 20
    coach_max_sessions: int = 1000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
