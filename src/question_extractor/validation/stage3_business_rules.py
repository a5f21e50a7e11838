"""
Stage 3: Business Rules Validation.

Rules every extracted question must satisfy:
- at least two options
- option letters unique within the question
- non-blank question and option text
- at least one correct option, and not every option correct

A question that breaks a rule fails the whole response; nothing is
silently dropped.
"""

import structlog

from question_extractor.models.question_models import ExtractedQuestion
from question_extractor.monitoring.metrics import malformed_responses_total
from question_extractor.validation.exceptions import BusinessRuleViolation

logger = structlog.get_logger(__name__)


class Stage3BusinessRules:
    """
    Stage 3 validator: Business rules enforcement.

    Raises BusinessRuleViolation on the first violated rule.
    """

    def __init__(self, min_options: int = 2):
        self.min_options = min_options

    def validate(self, questions: list[ExtractedQuestion]) -> None:
        for index, question in enumerate(questions):
            self._validate_question(index, question)

        logger.debug("Stage 3: all business rules validated", questions=len(questions))

    def _validate_question(self, index: int, question: ExtractedQuestion) -> None:
        if not question.question_text.strip():
            self._fail("non_blank_question_text", index, "Question text is blank", question.question_text)

        if len(question.options) < self.min_options:
            self._fail(
                "min_options",
                index,
                f"Question has {len(question.options)} option(s), at least {self.min_options} required",
                len(question.options),
            )

        letters = [option.option_letter.strip().upper() for option in question.options]
        duplicates = sorted({letter for letter in letters if letters.count(letter) > 1})
        if duplicates:
            self._fail(
                "unique_option_letters",
                index,
                f"Duplicate option letters: {', '.join(duplicates)}",
                duplicates,
            )

        for option in question.options:
            if not option.option_text.strip():
                self._fail(
                    "non_blank_option_text",
                    index,
                    f"Option {option.option_letter} has blank text",
                    option.option_letter,
                )

        correct = len(question.correct_options)
        if correct == 0:
            self._fail("has_correct_option", index, "No option is marked correct", 0)
        if correct == len(question.options):
            self._fail("not_all_correct", index, "Every option is marked correct", correct)

    @staticmethod
    def _fail(rule_name: str, index: int, message: str, invalid_value) -> None:
        malformed_responses_total.labels(stage="stage3", error_type=rule_name).inc()
        logger.warning("Business rule violated", rule=rule_name, question_index=index, detail=message)
        raise BusinessRuleViolation(
            f"Question {index + 1}: {message}",
            rule_name=rule_name,
            question_index=index,
            invalid_value=invalid_value,
        )
