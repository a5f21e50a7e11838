"""
Stage 2: JSON Schema Validation.

Validate the parsed array against schema/question_extraction.json.
This is a hard-fail stage.
"""

import json
from pathlib import Path
from typing import Any

import structlog
from jsonschema import Draft7Validator

from question_extractor.monitoring.metrics import malformed_responses_total
from question_extractor.validation.exceptions import SchemaValidationError

logger = structlog.get_logger(__name__)


class Stage2SchemaValidation:
    """
    Stage 2 validator: Validate against JSON Schema.

    The schema is loaded lazily once and the compiled validator is reused.
    """

    def __init__(self, schema_path: str):
        self.schema_path = schema_path
        self._schema: dict | None = None
        self._validator: Draft7Validator | None = None

    def _load_schema(self) -> dict:
        """
        Load and cache JSON schema from file.

        Raises:
            FileNotFoundError: Schema file missing (deployment error, not a
                model error)
        """
        if self._schema is not None:
            return self._schema

        schema_file = Path(self.schema_path)
        with open(schema_file, "r", encoding="utf-8") as f:
            self._schema = json.load(f)

        logger.info("Loaded JSON Schema", schema_path=self.schema_path)
        return self._schema

    @property
    def schema(self) -> dict:
        return self._load_schema()

    def _get_validator(self) -> Draft7Validator:
        if self._validator is None:
            self._validator = Draft7Validator(self._load_schema())
        return self._validator

    def validate(self, data: Any) -> None:
        """
        Validate data against JSON Schema.

        Raises:
            SchemaValidationError: If data doesn't conform to schema
        """
        validator = self._get_validator()
        errors = list(validator.iter_errors(data))

        if errors:
            error_messages = []
            for error in errors[:10]:
                path = ".".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            malformed_responses_total.labels(stage="stage2", error_type="schema_violation").inc()
            raise SchemaValidationError(
                f"JSON Schema validation failed with {len(errors)} error(s)",
                validation_errors=error_messages,
                schema_path=self.schema_path
            )

        logger.debug("Stage 2: validated against JSON Schema")
