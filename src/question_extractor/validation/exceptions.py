"""
Exceptions for the response validation pipeline.

A model that answered but answered with something unusable is not an
availability problem: these errors are raised straight to the caller and
never trigger a retry or a model switch.
"""

from typing import Any


class MalformedResponse(Exception):
    """
    Base exception for all validation errors.

    Raised by Stages 1-3 when the winning model's text cannot be turned
    into questions.
    """

    stage = "unknown"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize validation error.

        Args:
            message: Human-readable error description
            details: Structured error data for logging/metrics
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class JSONParseError(MalformedResponse):
    """
    Stage 1: no JSON array could be recovered from the model text.
    """

    stage = "stage1"

    def __init__(self, message: str, raw_content: str | None = None, parse_error: str | None = None):
        """
        Initialize JSON parse error.

        Args:
            message: Error description
            raw_content: Malformed content (first 500 chars are kept)
            parse_error: Original json.JSONDecodeError message
        """
        details = {}
        if raw_content:
            details["content_snippet"] = raw_content[:500]
        if parse_error:
            details["parse_error"] = parse_error

        super().__init__(message, details)


class SchemaValidationError(MalformedResponse):
    """
    Stage 2: parsed JSON does not match schema/question_extraction.json.
    """

    stage = "stage2"

    def __init__(
        self,
        message: str,
        validation_errors: list[str] | None = None,
        schema_path: str | None = None
    ):
        details = {}
        if validation_errors:
            details["validation_errors"] = validation_errors
        if schema_path:
            details["schema_path"] = schema_path

        super().__init__(message, details)


class BusinessRuleViolation(MalformedResponse):
    """
    Stage 3: structurally valid questions that make no sense as exam items:
    - fewer than two options
    - duplicate option letters
    - blank question or option text
    - no correct option, or every option correct
    """

    stage = "stage3"

    def __init__(
        self,
        message: str,
        rule_name: str | None = None,
        question_index: int | None = None,
        invalid_value: Any | None = None,
    ):
        """
        Initialize business rule violation.

        Args:
            message: Error description
            rule_name: Name of the violated rule (e.g., "unique_option_letters")
            question_index: 0-based position of the offending question
            invalid_value: The value that caused the violation
        """
        details = {}
        if rule_name:
            details["rule_name"] = rule_name
        if question_index is not None:
            details["question_index"] = question_index
        if invalid_value is not None:
            details["invalid_value"] = str(invalid_value)[:200]

        super().__init__(message, details)
