"""
Response validation pipeline: model text to questions.

Coordinates the validation stages:
- Stage 1: JSON Parse (hard fail)
- Stage 2: JSON Schema (hard fail)
- Stage 3: Business Rules (hard fail)
- Stage 4: Quality Checks (warnings)

Stages 1-3 raise MalformedResponse subclasses, which the extraction
pipeline passes straight to the caller. Stage 4 only accumulates warnings.
"""

from typing import Any

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from question_extractor.models.question_models import ExtractedQuestion
from question_extractor.monitoring.metrics import malformed_responses_total
from question_extractor.validation.exceptions import MalformedResponse, SchemaValidationError
from question_extractor.validation.stage1_json_parse import Stage1JSONParse
from question_extractor.validation.stage2_schema import Stage2SchemaValidation
from question_extractor.validation.stage3_business_rules import Stage3BusinessRules
from question_extractor.validation.stage4_quality import Stage4QualityChecks

logger = structlog.get_logger(__name__)

_QUESTIONS_ADAPTER = TypeAdapter(list[ExtractedQuestion])


class ResponseValidationPipeline:
    """
    Multi-stage validation pipeline.

    Stateless after construction; one instance serves every extraction.
    """

    def __init__(self, schema_path: str, min_options: int = 2):
        """
        Initialize validation pipeline.

        Args:
            schema_path: Path to question_extraction.json
            min_options: Minimum options per question (Stage 3)
        """
        self.stage1 = Stage1JSONParse()
        self.stage2 = Stage2SchemaValidation(schema_path)
        self.stage3 = Stage3BusinessRules(min_options=min_options)
        self.stage4 = Stage4QualityChecks()

    def validate(self, content: str) -> tuple[list[ExtractedQuestion], list[str]]:
        """
        Run the full pipeline on one model response.

        Args:
            content: Raw text from the winning model

        Returns:
            Tuple of (questions in document order, warning strings)

        Raises:
            MalformedResponse: If any hard stage fails (Stages 1-3)
        """
        try:
            parsed = self.stage1.validate(content)
            self.stage2.validate(parsed)
            questions = self._to_models(parsed)
            self.stage3.validate(questions)
        except MalformedResponse as e:
            logger.warning(
                "Model response rejected",
                stage=e.stage,
                error_type=type(e).__name__,
                error=e.message,
                details=e.details,
            )
            raise

        warnings = self.stage4.validate(questions)
        if warnings:
            logger.warning(
                "Validation completed with warnings",
                warnings_count=len(warnings),
                first_warnings=warnings[:3],
            )
        else:
            logger.info("Validation completed", questions=len(questions))

        return questions, warnings

    @staticmethod
    def _to_models(parsed: list[Any]) -> list[ExtractedQuestion]:
        try:
            return _QUESTIONS_ADAPTER.validate_python(parsed)
        except PydanticValidationError as e:
            error_messages = [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            malformed_responses_total.labels(stage="stage2", error_type="model_validation").inc()
            raise SchemaValidationError(
                f"Question model validation failed: {len(e.errors())} error(s)",
                validation_errors=error_messages[:10],
            ) from e
