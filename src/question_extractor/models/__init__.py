"""
Pydantic data models for the Question Extractor.

Includes:
- Enums (ErrorKind, ExtractionOutcome)
- LLM models (LLMGenerationRequest, LLMGenerationResponse)
- Output models (QuestionOption, ExtractedQuestion, ExtractionResult)
"""

from question_extractor.models.enums import ErrorKind, ExtractionOutcome
from question_extractor.models.llm_models import (
    LLMGenerationRequest,
    LLMGenerationResponse,
)
from question_extractor.models.question_models import (
    ExtractedQuestion,
    ExtractionResult,
    QuestionEnrichment,
    QuestionOption,
)

__all__ = [
    # Enums
    "ErrorKind",
    "ExtractionOutcome",
    # LLM models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
    # Output models
    "QuestionOption",
    "ExtractedQuestion",
    "ExtractionResult",
    "QuestionEnrichment",
]
