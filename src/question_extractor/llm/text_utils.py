"""
Text processing utilities for the LLM layer.

Prepares document text for the extraction prompt: whitespace cleanup left
over from document-to-text conversion and truncation that does not cut a
question in half when it can be avoided.
"""

import re

_QUESTION_START = re.compile(r'\n\s*(?:\d+[.)]|Question\s+\d+[.:]|Pregunta\s+\d+[.:])', re.IGNORECASE)


def normalize_document_text(text: str) -> str:
    """
    Collapse runs of blank lines and trailing spaces.

    Text extracted from PDFs often carries form feeds and long whitespace
    runs that only waste prompt tokens.

    Examples:
        >>> normalize_document_text("1. Q?\\f\\n\\n\\n\\nA) x  ")
        "1. Q?\\n\\nA) x"
    """
    text = text.replace('\r\n', '\n').replace('\f', '\n')
    text = re.sub(r'[ \t]+\n', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()


def truncate_at_sentence_boundary(text: str, max_chars: int) -> str:
    """
    Truncate text at the nearest question or sentence boundary before max_chars.

    Preference order inside the first max_chars characters:
    1. The start of the last numbered question ("12.", "Question 12:")
    2. The last sentence end (. ! ? followed by whitespace)
    3. The last space past 80% of the limit
    4. A hard cut

    Args:
        text: Text to truncate
        max_chars: Maximum character count

    Returns:
        Truncated text, never longer than max_chars.

    Examples:
        >>> truncate_at_sentence_boundary("Hello. World. Test.", 15)
        "Hello. World."
        >>> truncate_at_sentence_boundary("No period here", 10)
        "No period "
    """
    if len(text) <= max_chars:
        return text

    truncated_segment = text[:max_chars]

    # A partial trailing question is worse than a missing one
    question_starts = list(_QUESTION_START.finditer(truncated_segment))
    if question_starts and question_starts[-1].start() > max_chars * 0.5:
        return text[:question_starts[-1].start()].rstrip()

    sentence_end_pattern = r'[.!?](?:\s|$)'
    matches = list(re.finditer(sentence_end_pattern, truncated_segment))

    if matches:
        cutoff = matches[-1].end()
        if truncated_segment[cutoff - 1:cutoff].isspace():
            cutoff -= 1
        return text[:cutoff]

    last_space = truncated_segment.rfind(' ')
    if last_space > max_chars * 0.8:
        return text[:last_space]

    return text[:max_chars]
