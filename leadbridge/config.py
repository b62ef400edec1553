"""
Configuration management with Pydantic Settings
Loads from .env file with validation and defaults
"""

import json
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with validation"""

    app_name: str = Field(default="leadbridge", description="Service name reported by /health")

    # Extraction service (OpenAI)
    openai_api_key: Optional[str] = Field(None, description="OpenAI API Key")
    openai_model: str = Field(default="gpt-4o-mini", description="Model used for lead extraction")
    openai_max_tokens: int = Field(default=500, description="Completion token limit for extraction")
    openai_timeout_seconds: float = Field(default=30.0, description="Extraction request timeout")

    # Voice platform (ElevenLabs Conversational AI)
    elevenlabs_api_key: Optional[str] = Field(None, description="ElevenLabs API Key")
    elevenlabs_agent_id: Optional[str] = Field(None, description="ElevenLabs agent ID")
    elevenlabs_timeout_seconds: float = Field(default=10.0, description="Signed URL request timeout")
    support_email: str = Field(
        default="hello@quantaailab.com",
        description="Address read out to callers when the agent cannot be reached"
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./leads.db",
        description="Database connection URL"
    )

    # Intake filter and outcome classification
    intake_min_duration_seconds: int = Field(
        default=20,
        description="Calls shorter than this are discarded when they also have few turns"
    )
    intake_max_short_turns: int = Field(
        default=2,
        description="Max transcript turns for a short call to still be discarded"
    )
    abandoned_max_duration_seconds: int = Field(
        default=60,
        description="Calls shorter than this with little data are marked abandoned"
    )

    # Lead store retry
    store_max_attempts: int = Field(default=3, description="Insert attempts before giving up")
    store_initial_delay_ms: int = Field(default=1000, description="First retry delay")
    store_max_delay_ms: int = Field(default=8000, description="Retry delay cap")

    # Notifications (optional)
    telegram_bot_token: Optional[str] = Field(None, description="Telegram Bot Token")
    telegram_chat_ids: Optional[str] = Field(None, description="Telegram chat IDs for new leads (JSON list)")

    # Environment
    environment: str = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    port: int = Field(default=3000, description="HTTP port")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        if v not in ["development", "production", "testing"]:
            raise ValueError("Environment must be development, production, or testing")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("Invalid log level")
        return v

    @field_validator("store_max_attempts")
    @classmethod
    def validate_store_max_attempts(cls, v):
        if v < 1:
            raise ValueError("store_max_attempts must be at least 1")
        return v

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def telegram_chat_id_list(self) -> List[str]:
        """Chat IDs parsed from the JSON setting; a bare ID is accepted too"""
        if not self.telegram_chat_ids:
            return []
        try:
            parsed = json.loads(self.telegram_chat_ids)
        except json.JSONDecodeError:
            return [self.telegram_chat_ids.strip()]
        if isinstance(parsed, list):
            return [str(chat_id) for chat_id in parsed]
        return [str(parsed)]

    model_config = {
        "extra": "ignore",  # Ignore extra fields from .env
        "env_file": ".env",
        "case_sensitive": False
    }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings"""
    return settings
