"""
Deterministic cleanup of raw transcribed or typed text.

Removes filler words, applies the vocabulary correction tables and
normalises punctuation, spacing and capitalisation. Total: any input
yields a string, never an exception.
"""

import logging
import re
from typing import Optional

from .corrections import build_correction_table

logger = logging.getLogger(__name__)

FILLER_WORDS = [
    "um", "uh", "er", "ah", "like", "you know", "so", "well",
    "actually", "basically", "literally",
    "i mean", "you see", r"right\?", r"ok\?", r"okay\?",
    "let me", "let's see", "hold on", "wait",
]

# A filler takes the commas that framed it along with it: "Um, I need" -> "I need".
_FILLER_RE = re.compile(
    r"(?:,\s*)?(?<![\w#])(?:" + "|".join(FILLER_WORDS) + r")(?!\w)(?:\s*,)?",
    re.IGNORECASE,
)

_DEFAULT_TABLE = build_correction_table()

_INLINE_SPACE_RE = re.compile(r"[^\S\n]+")
_LINE_BREAK_RE = re.compile(r" ?\n[\s]*")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"[^\S\n]+([,.!?;:])")
_SPACE_AFTER_PUNCT_RE = re.compile(r"([,.!?;:])(?=[A-Za-z])")
_REPEATS = [
    (re.compile(r"\.{2,}"), "."),
    (re.compile(r"\?{2,}"), "?"),
    (re.compile(r"!{2,}"), "!"),
]
_LEADING_PUNCT_RE = re.compile(r"^[\s,;:]+")
_SENTENCE_START_RE = re.compile(r"(^|[.!?]\s+)([a-z])")


def remove_fillers(text: str) -> str:
    return _FILLER_RE.sub(" ", text)


def apply_corrections(text: str, table: Optional[list] = None) -> str:
    """Run every (regex, replacement) pair over the text in order."""
    for regex, replacement in table if table is not None else _DEFAULT_TABLE:
        text = regex.sub(replacement, text)
    return text


def normalize_punctuation(text: str) -> str:
    """Collapse whitespace and tidy spacing and repeats around punctuation.

    Line breaks survive as single newlines so list items stay on their
    own lines.
    """
    text = _INLINE_SPACE_RE.sub(" ", text)
    text = _LINE_BREAK_RE.sub("\n", text)
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    text = _SPACE_AFTER_PUNCT_RE.sub(r"\1 ", text)
    for regex, replacement in _REPEATS:
        text = regex.sub(replacement, text)
    text = _LEADING_PUNCT_RE.sub("", text)
    return text.strip()


def capitalize_sentences(text: str) -> str:
    return _SENTENCE_START_RE.sub(lambda m: m.group(1) + m.group(2).upper(), text)


def clean_text(raw_text, corrections: Optional[list] = None) -> str:
    """Clean raw text for task extraction.

    Steps (order matters):
        1. Trim
        2. Remove filler words and false starts
        3. Apply vocabulary corrections (transcription fixes, neutral language)
        4. Normalise whitespace and punctuation
        5. Capitalise sentence starts
        6. Terminate with a period if needed

    Args:
        raw_text: Text to clean. Non-string input yields "".
        corrections: Compiled correction table; defaults to the built-in one.

    Returns:
        The cleaned text, possibly empty.
    """
    if not raw_text or not isinstance(raw_text, str):
        return ""

    cleaned = raw_text.strip()
    cleaned = remove_fillers(cleaned)
    cleaned = apply_corrections(cleaned, corrections)
    cleaned = normalize_punctuation(cleaned)
    cleaned = capitalize_sentences(cleaned)

    if cleaned and cleaned[-1] not in ".!?":
        cleaned += "."

    logger.debug(f"Cleaned {len(raw_text)} -> {len(cleaned)} chars")
    return cleaned
