"""Application settings loaded from the environment / .env file."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATABASE_URL: str = "sqlite:///./nihongo_quiz.db"
    # echo SQL statements; toggle for debugging
    DATABASE_ECHO: bool = False

    SESSION_SECRET_KEY: str = "CHANGE_ME_TO_A_RANDOM_SECRET"
    LOG_LEVEL: str = "INFO"

    # Fixed seed for question/option shuffling. Leave unset in production so
    # every fetch is shuffled independently.
    QUIZ_SHUFFLE_SEED: Optional[int] = None

    SEED_ADMIN_EMAIL: str = "admin@example.com"
    SEED_ADMIN_PASSWORD: str = "admin123"


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance."""
    return Settings()
