"""
Question Extractor.

Turns already-extracted document text into structured exam questions by
calling the Gemini generative API through a resilient invocation engine:
- Retry with exponential backoff on transient overload (502/503)
- Fallback across a prioritized roster of models
- Immediate abort on fatal errors (bad key, malformed request, quota)
- Live progress events for UI/log consumers
- Optional follow-up calls adding explanations to unexplained questions

Architecture: RetryOrchestrator + GeminiClient (httpx) + multi-stage
response validation, exposed as a Python API and a FastAPI service.
"""

__version__ = "0.1.0"

from question_extractor.enrichment import EnrichmentProgress, QuestionEnricher
from question_extractor.exceptions import (
    AllModelsExhausted,
    Cancelled,
    ExtractionFailed,
    FatalProviderError,
    MalformedResponse,
)
from question_extractor.models import ExtractedQuestion, ExtractionResult, QuestionOption
from question_extractor.pipeline import ExtractionPipeline, extract_questions
from question_extractor.retry import CancellationToken, ModelRoster, ProgressEvent

__all__ = [
    "ExtractionPipeline",
    "extract_questions",
    "ExtractionResult",
    "ExtractedQuestion",
    "QuestionOption",
    "ModelRoster",
    "ProgressEvent",
    "QuestionEnricher",
    "EnrichmentProgress",
    "CancellationToken",
    "ExtractionFailed",
    "AllModelsExhausted",
    "FatalProviderError",
    "MalformedResponse",
    "Cancelled",
    "__version__",
]
