"""
FastAPI dependency injection for the extraction service.

Provides singleton instances of expensive resources (HTTP client, prompt
templates, compiled schema) and the pipeline built on them.
"""

from functools import lru_cache

from fastapi import Header, HTTPException, status

from question_extractor.config import Settings, settings
from question_extractor.llm.base_client import BaseLLMClient
from question_extractor.llm.gemini_client import GeminiClient
from question_extractor.pipeline import ExtractionPipeline


@lru_cache()
def get_settings() -> Settings:
    return settings


@lru_cache()
def get_llm_client() -> BaseLLMClient:
    """
    Get singleton Gemini client with connection pooling.

    The client holds no credential, so one instance serves every caller.
    """
    config = get_settings()
    return GeminiClient(
        base_url=config.GEMINI_BASE_URL,
        timeout=config.ATTEMPT_TIMEOUT_SECONDS,
    )


@lru_cache()
def get_pipeline() -> ExtractionPipeline:
    """
    Get singleton extraction pipeline.

    Loads the Jinja2 template and JSON Schema once.
    """
    return ExtractionPipeline.from_settings(get_llm_client(), get_settings())


def get_api_key(x_api_key: str | None = Header(default=None)) -> str:
    """Credential for the upstream API, passed through per request."""
    if not x_api_key or not x_api_key.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Api-Key header",
        )
    return x_api_key
