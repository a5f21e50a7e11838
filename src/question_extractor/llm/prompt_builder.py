"""
Prompt builder for question extraction requests.

Responsible for:
- Loading and rendering the Jinja2 extraction template
- Normalizing and truncating document text (question/sentence boundary)
- Rendering the per-question explanation (enrichment) prompt

The prompt is rendered once per extraction call and reused verbatim for
every attempt and every model in the roster.
"""

from pathlib import Path

import structlog
from jinja2 import Environment, FileSystemLoader

from question_extractor.llm.text_utils import normalize_document_text, truncate_at_sentence_boundary
from question_extractor.models.question_models import ExtractedQuestion


logger = structlog.get_logger(__name__)

TEMPLATE_NAME = "question_extraction.txt"
ENRICHMENT_TEMPLATE_NAME = "question_enrichment.txt"


class PromptBuilder:
    """
    Build extraction prompts from raw document text.

    Handles:
    - Template rendering (Jinja2)
    - Text normalization and truncation
    """

    def __init__(
        self,
        templates_dir: Path,
        document_char_limit: int = 30000,
        min_options: int = 2,
    ):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing question_extraction.txt and
                question_enrichment.txt
            document_char_limit: Max document characters sent to the model
            min_options: Minimum options per question announced to the model
        """
        if document_char_limit < 1:
            raise ValueError(f"document_char_limit must be >= 1, got {document_char_limit}")

        self.templates_dir = Path(templates_dir)
        self.document_char_limit = document_char_limit
        self.min_options = min_options

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False  # plain-text prompt, not HTML
        )

        try:
            self.template = self.jinja_env.get_template(TEMPLATE_NAME)
            self.enrichment_template = self.jinja_env.get_template(ENRICHMENT_TEMPLATE_NAME)
        except Exception as e:
            logger.error("Failed to load prompt template", error=str(e), templates_dir=str(self.templates_dir))
            raise

        logger.info(
            "PromptBuilder initialized",
            templates_dir=str(self.templates_dir),
            document_char_limit=document_char_limit,
        )

    def build_prompt(self, document_text: str) -> tuple[str, dict]:
        """
        Render the extraction prompt for one document.

        Args:
            document_text: Already-extracted document text

        Returns:
            Tuple of (rendered_prompt, metadata_dict)
            metadata includes original/final document length and whether
            truncation was applied.

        Raises:
            ValueError: If the document is blank after normalization
        """
        normalized = normalize_document_text(document_text)
        if not normalized:
            raise ValueError("document_text must not be blank")

        truncated = truncate_at_sentence_boundary(normalized, self.document_char_limit)
        truncation_applied = len(truncated) < len(normalized)

        rendered = self.template.render(
            document=truncated,
            truncated=truncation_applied,
            min_options=self.min_options,
        ).strip()

        metadata = {
            "truncation_applied": truncation_applied,
            "original_document_length": len(document_text),
            "final_document_length": len(truncated),
            "prompt_length": len(rendered),
        }

        logger.info("Extraction prompt built", **metadata)
        return rendered, metadata

    def build_enrichment_prompt(self, question: ExtractedQuestion) -> str:
        """Render the prompt asking for one question's explanation and link."""
        correct_answers = ", ".join(
            f"{option.option_letter}) {option.option_text}" for option in question.correct_options
        )
        rendered = self.enrichment_template.render(
            question=question,
            correct_answers=correct_answers,
        ).strip()

        logger.debug("Enrichment prompt built", prompt_length=len(rendered))
        return rendered
