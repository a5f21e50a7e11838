"""
Stage 4: Quality Checks.

Non-blocking checks that produce warnings:
- Duplicate questions (same normalized text)
- Questions without an explanation
- Page numbers going backwards

Unlike Stages 1-3, these do NOT raise exceptions.
"""

import re

from question_extractor.models.question_models import ExtractedQuestion


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip().lower()


class Stage4QualityChecks:
    """Stage 4 validator: returns warning strings instead of raising."""

    def validate(self, questions: list[ExtractedQuestion]) -> list[str]:
        warnings: list[str] = []
        warnings.extend(self._check_duplicates(questions))
        warnings.extend(self._check_missing_explanations(questions))
        warnings.extend(self._check_page_order(questions))
        return warnings

    def _check_duplicates(self, questions: list[ExtractedQuestion]) -> list[str]:
        seen: dict[str, int] = {}
        warnings = []
        for index, question in enumerate(questions):
            key = _normalize(question.question_text)
            if key in seen:
                warnings.append(f"Question {index + 1} duplicates question {seen[key] + 1}")
            else:
                seen[key] = index
        return warnings

    def _check_missing_explanations(self, questions: list[ExtractedQuestion]) -> list[str]:
        missing = [i + 1 for i, q in enumerate(questions) if q.explanation is None]
        if not missing:
            return []
        return [f"{len(missing)} question(s) without explanation: {missing[:10]}"]

    def _check_page_order(self, questions: list[ExtractedQuestion]) -> list[str]:
        warnings = []
        last_page = None
        for index, question in enumerate(questions):
            if question.page_number is None:
                continue
            if last_page is not None and question.page_number < last_page:
                warnings.append(
                    f"Question {index + 1} is on page {question.page_number}, after page {last_page}"
                )
            last_page = question.page_number
        return warnings
