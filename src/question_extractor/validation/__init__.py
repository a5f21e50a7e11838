"""
Response validation for model output.

Turns the winning model's raw text into ExtractedQuestion objects or raises
a MalformedResponse. Malformed output is never retried.
"""

from question_extractor.validation.exceptions import (
    BusinessRuleViolation,
    JSONParseError,
    MalformedResponse,
    SchemaValidationError,
)
from question_extractor.validation.enrichment import EnrichmentResponseParser
from question_extractor.validation.pipeline import ResponseValidationPipeline

__all__ = [
    "ResponseValidationPipeline",
    "EnrichmentResponseParser",
    "MalformedResponse",
    "JSONParseError",
    "SchemaValidationError",
    "BusinessRuleViolation",
]
