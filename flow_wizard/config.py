from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Conversation Pacing (milliseconds)
    # Every delay is a Session Clock timer, never a blocking wait
    TYPING_DELAY_MS: int = 500
    FREE_TEXT_DELAY_MS: int = 1000
    PROCESSING_DELAY_MS: int = 2500
    FOLLOW_UP_DELAY_MS: int = 1500

    # Derivation Parameters
    SECRET_MIN_LENGTH: int = 12
    USERNAME_FALLBACK_PREFIX: str = "client_"

    # Welcome screen: this flow is offered first
    DEFAULT_FLOW_ID: str = "create-client"

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
