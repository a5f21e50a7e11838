"""
Validation of per-question enrichment replies.

The reply must hold exactly one object with a non-blank explanation and an
optional link. Stage 1 recovers the JSON, the enrichment schema checks its
shape; any failure is a MalformedResponse the enricher treats as "keep the
question as extracted".
"""

import structlog
from pydantic import ValidationError as PydanticValidationError

from question_extractor.models.question_models import QuestionEnrichment
from question_extractor.monitoring.metrics import malformed_responses_total
from question_extractor.validation.exceptions import MalformedResponse, SchemaValidationError
from question_extractor.validation.stage1_json_parse import Stage1JSONParse
from question_extractor.validation.stage2_schema import Stage2SchemaValidation

logger = structlog.get_logger(__name__)


class EnrichmentResponseParser:
    """Turns one enrichment reply into a QuestionEnrichment."""

    def __init__(self, schema_path: str):
        self.stage1 = Stage1JSONParse()
        self.stage2 = Stage2SchemaValidation(schema_path)

    def parse(self, content: str) -> QuestionEnrichment:
        """
        Raises:
            MalformedResponse: Unparseable reply, not exactly one object, or
                missing / blank explanation
        """
        try:
            parsed = self.stage1.validate(content)
            if len(parsed) != 1:
                malformed_responses_total.labels(stage="enrichment", error_type="object_count").inc()
                raise SchemaValidationError(
                    f"Expected one enrichment object, got {len(parsed)}",
                    validation_errors=[f"root: {len(parsed)} items"],
                )
            self.stage2.validate(parsed[0])
            return QuestionEnrichment.model_validate(parsed[0])
        except PydanticValidationError as e:
            malformed_responses_total.labels(stage="enrichment", error_type="model_validation").inc()
            raise SchemaValidationError(
                "Enrichment model validation failed",
                validation_errors=[err["msg"] for err in e.errors()][:10],
            ) from e
        except MalformedResponse as e:
            logger.warning("Enrichment reply rejected", stage=e.stage, error=e.message)
            raise
