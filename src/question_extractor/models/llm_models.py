"""
LLM-specific data models for request/response cycle.

These models are internal to the LLM layer and handle the raw communication
with the generative API. They are separate from the business models
(ExtractionResult) so the client implementation can change freely.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class LLMGenerationRequest(BaseModel):
    """
    Internal request model for one generation attempt.

    One request targets exactly one model. The credential travels with the
    request because it is supplied per extraction call, never configured
    globally.
    """
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., min_length=1, description="Complete prompt text")
    model: str = Field(..., min_length=1, description="Model identifier (e.g., 'gemini-2.5-flash')")
    credential: str = Field(..., min_length=1, repr=False, description="Opaque API key")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=8192, ge=1, le=65536, description="Maximum tokens to generate")
    response_mime_type: Optional[str] = Field(
        default="application/json",
        description="Requested response MIME type (None lets the model choose)"
    )


class LLMGenerationResponse(BaseModel):
    """
    Internal response model from one successful generation.

    Contains the raw generated text plus metadata for logging.
    Parsing of the text into questions happens in the validation layer.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text (expected to hold a JSON array)")
    model_version: str = Field(..., description="Model version reported by the provider")
    finish_reason: str = Field(
        ...,
        description="Why generation stopped: 'STOP', 'MAX_TOKENS', 'SAFETY', etc."
    )
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    usage_tokens: Optional[int] = Field(default=None, description="Total tokens used")
    latency_ms: int = Field(..., ge=0, description="Round-trip latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (for debugging)"
    )
