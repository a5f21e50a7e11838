"""
Enumerations for Question Extractor data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """
    Binary classification of a failed generation attempt.

    TRANSIENT failures are expected to clear on their own (overload,
    temporary unavailability) and are retried / fallen back on.
    FATAL failures will not improve by repeating the same request.
    """

    TRANSIENT = "transient"
    FATAL = "fatal"


class ExtractionOutcome(str, Enum):
    """Terminal outcome of one extraction call (metrics label)."""

    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    FATAL = "fatal"
    MALFORMED = "malformed"
    CANCELLED = "cancelled"
