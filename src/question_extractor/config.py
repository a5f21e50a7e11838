"""
Configuration settings for the Question Extractor.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Question Extractor"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Gemini Configuration ===
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    MODEL_ROSTER: list[str] = [
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.5-flash-lite",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
    ]
    ATTEMPT_TIMEOUT_SECONDS: float = 120.0  # per attempt, covers hung requests

    # === LLM Generation Parameters ===
    LLM_TEMPERATURE: float = 0.1
    LLM_MAX_TOKENS: int = 8192

    # === Retry & Fallback ===
    MAX_ATTEMPTS_PER_MODEL: int = 3
    BACKOFF_BASE_SECONDS: float = 4.0  # 4s, 8s, 16s
    BACKOFF_MAX_DELAY_SECONDS: Optional[float] = None  # None = no ceiling

    # === Input Processing ===
    DOCUMENT_CHAR_LIMIT: int = 30000  # chars sent to the model

    # === Prompting & Validation ===
    PROMPT_TEMPLATES_DIR: str = str(PACKAGE_DIR / "prompts")
    JSON_SCHEMA_PATH: str = str(PACKAGE_DIR / "schema" / "question_extraction.json")
    ENRICHMENT_SCHEMA_PATH: str = str(PACKAGE_DIR / "schema" / "question_enrichment.json")

    # === Explanation Enrichment ===
    ENRICHMENT_PAUSE_SECONDS: float = 0.5  # between per-question calls

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
