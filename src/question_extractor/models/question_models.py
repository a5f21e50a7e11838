"""
Output data models for the Question Extractor.

These models describe the structured questions returned to the caller once
the winning model's raw text has passed the validation pipeline. They mirror
the JSON layout the prompt asks the model for (see
schema/question_extraction.json).

Correctness is expressed ONLY through the per-option `is_correct` flags.
Whether a question takes several answers is derived from those flags, never
read from the model output.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class QuestionOption(BaseModel):
    """A single labeled answer option."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    option_letter: str = Field(..., min_length=1, description="Label as printed (A, B, C...)")
    option_text: str = Field(..., description="Option text, kept verbatim")
    is_correct: bool = Field(..., description="Whether this option is a correct answer")


class ExtractedQuestion(BaseModel):
    """
    One exam question with its ordered options.

    `link` is the optional source reference the model may supply
    (documentation page, textbook section, ...).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    question_text: str = Field(..., min_length=1, description="Full question text")
    options: list[QuestionOption] = Field(
        ...,
        min_length=2,
        description="Ordered answer options (at least 2)"
    )
    explanation: Optional[str] = Field(default=None, description="Why the correct answer is correct")
    link: Optional[str] = Field(default=None, description="Optional source reference")
    page_number: Optional[int] = Field(default=None, ge=1, description="Page the question came from")

    @field_validator("explanation", "link", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        # models often answer "" instead of null
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def requires_multiple_answers(self) -> bool:
        """True when more than one option is flagged correct."""
        return len(self.correct_options) > 1

    @property
    def correct_options(self) -> list[QuestionOption]:
        return [option for option in self.options if option.is_correct]


class QuestionEnrichment(BaseModel):
    """Explanation and reference link generated for one question."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    explanation: str = Field(..., min_length=1, description="Why the correct answer is correct")
    link: Optional[str] = Field(default=None, description="Reference where the topic is explained")

    @field_validator("link", mode="before")
    @classmethod
    def _blank_link_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ExtractionResult(BaseModel):
    """
    Final result of one extraction call.

    Questions come from the winning model's output; when enrichment ran,
    missing explanations and links are filled in by follow-up calls.
    """

    model_config = ConfigDict(frozen=True)

    questions: list[ExtractedQuestion] = Field(
        default_factory=list,
        description="Questions in document order"
    )
    model: str = Field(..., description="Model that produced the accepted response")
    total_attempts: int = Field(..., ge=1, description="Generation attempts across all models")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking quality warnings about the extracted questions"
    )
    enriched_questions: int = Field(
        default=0,
        ge=0,
        description="Questions whose explanation was filled in by a follow-up call"
    )

