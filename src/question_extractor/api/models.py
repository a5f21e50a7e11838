"""
API-specific request and response models for FastAPI endpoints.

These wrap the core ExtractionResult with HTTP-level envelopes. The API key
never appears in a body; it travels in the X-Api-Key header.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from question_extractor.models.question_models import ExtractionResult


class ExtractRequest(BaseModel):
    """Body of POST /v1/extract and POST /v1/extract/stream."""

    document_text: str = Field(
        ...,
        min_length=1,
        description="Already-extracted document text"
    )
    model_roster: Optional[list[str]] = Field(
        default=None,
        min_length=1,
        description="Models to try in priority order (default: configured roster)"
    )
    max_attempts_per_model: Optional[int] = Field(
        default=None,
        ge=1,
        le=10,
        description="Attempt budget per model (default: configured value)"
    )
    enrich: bool = Field(
        default=False,
        description="Ask for an explanation and link for every question that lacks one"
    )


class ExtractResponse(BaseModel):
    """Response for the synchronous extraction endpoint."""

    status: str = Field(description="Request status", examples=["success"])
    result: ExtractionResult = Field(description="Extracted questions")
    warnings: list[str] = Field(
        default_factory=list,
        description="Validation warnings (non-critical issues)"
    )


class StreamLine(BaseModel):
    """One NDJSON line of the streaming endpoint."""

    type: Literal["progress", "enrichment", "result", "error"]
    data: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(description="Service status", examples=["healthy"])
    version: str = Field(description="Application version")
    models: list[str] = Field(description="Configured model roster")


class ErrorResponse(BaseModel):
    """Standard error response shape."""

    error: str = Field(description="Error code", examples=["extraction_failed"])
    message: str = Field(description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(default=None, description="Structured details")
    timestamp: str = Field(description="Error timestamp (ISO 8601)")
