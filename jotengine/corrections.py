"""
Vocabulary correction tables for the text cleaner.

Two groups of ordered (pattern, replacement) pairs:

    TRANSCRIPTION_FIXES — misheard-speech fixes, tuned empirically against
                          real recordings. Open-ended; extend freely.
    NEUTRAL_LANGUAGE    — shame/pressure words swapped for neutral ones.

Patterns are regular expressions matched case-insensitively on whole words
(the cleaner adds the boundaries). Replacements may use \\1-style group
references. Order matters: earlier rules see the text first, so longer
phrases sit above the shorter phrases they contain.

Extra pairs can be loaded at runtime from a JSON file of the form
    [["pattern", "replacement"], ...]
via load_corrections_file().
"""

import json
import logging
import re
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


# =============================================================================
# TRANSCRIPTION FIXES
# =============================================================================

TRANSCRIPTION_FIXES: list[tuple[str, str]] = [
    # Task vocabulary
    (r"(?:to|too) do list", "todo list"),
    (r"too do", "to do"),
    (r"make sure to", "remember to"),

    # Grammar
    (r"should of", "should have"),
    (r"could of", "could have"),
    (r"would of", "would have"),
    (r"do lot of", "do a lot of"),

    # Misheard words
    (r"complaint", "complete"),
    (r"by (banana|bananas|vegetables|groceries|items|food|things|bread|milk|coffee)", r"buy \1"),
    (r"there are free", "they are free"),
    (r"work after", "walk after"),
    (r"go for a work", "go for a walk"),
    (r"send out the ma", "send out the mail"),
    (r"weeke", "weekend"),
    (r"weeknd", "weekend"),
    (r"today I walk up", "today I woke up"),
    (r"feel sleep head", "feel sleepy"),
    (r"can walk project", "Canva project"),
    (r"heart day", "hard day"),
    (r"mild", "milk"),
    (r"save if they are feed", "see if they are free"),
    (r"save they are feed", "see if they are free"),
    (r"they are feed", "they are free"),
    (r"what are the plan set", "watch the planned show at"),
    (r"plan set", "planned show at"),
    (r"remind me to what", "remind me to watch"),
    (r"draught", "draft"),
    (r"gan milk", "oat milk"),
    (r"see if there free", "see if they're free"),
    (r"if there free", "if they're free"),
    (r"there free", "they're free"),

    # "say"/"save" misheard for "ask"
    (r"to say if (she|he|they) (is|are) free", r"to ask if \1 \2 free"),
    (r"say if (she|he|they) (is|are) free", r"ask if \1 \2 free"),
    (r"to save (she|he|they) (is|are) free", r"to ask if \1 \2 free"),
    (r"save the movie tickets are available", "see if the movie tickets are available"),
    (r"save the tickets are available", "see if the tickets are available"),
    (r"to save the movie tickets", "to see if the movie tickets"),
    (r"to save the tickets", "to see if the tickets"),

    # Context-aware phrase fixes
    (r"late number", "slide number"),
    (r"book stay for", "book a stay for"),
    (r"and it to book", "and I need to book"),
    (r"and it to", "and I need to"),
    (r"later the sweet", "later this evening"),
    (r"egg milk and", "eggs, milk and"),
    (r"egg milk", "eggs and milk"),
]


# =============================================================================
# NEUTRAL LANGUAGE
# =============================================================================

NEUTRAL_LANGUAGE: list[tuple[str, str]] = [
    (r"overdue", "pending"),
    (r"late", "pending"),
    (r"failed to", "haven't"),
    (r"must", "should"),
    (r"deadline", "target date"),
    (r"urgent", "priority"),
]


# Fixes run first so phrase-level repairs ("late number") see the raw words
# before neutral substitutions rewrite them.
DEFAULT_CORRECTIONS: list[tuple[str, str]] = TRANSCRIPTION_FIXES + NEUTRAL_LANGUAGE


def compile_corrections(
    pairs: Iterable[tuple[str, str]],
) -> list[tuple[re.Pattern, str]]:
    """Compile (pattern, replacement) pairs into whole-word regexes.

    The boundary also refuses a leading '#', so hashtag bodies are never
    rewritten. Invalid patterns are skipped with a warning.
    """
    compiled = []
    for pattern, replacement in pairs:
        try:
            regex = re.compile(rf"(?<![\w#])(?:{pattern})(?!\w)", re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Skipping invalid correction pattern {pattern!r}: {e}")
            continue
        compiled.append((regex, replacement))
    return compiled


def load_corrections_file(path: Path) -> list[tuple[str, str]]:
    """Read extra correction pairs from a JSON file.

    Malformed entries are dropped; a missing or unreadable file yields an
    empty list.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load corrections file {path}: {e}")
        return []

    pairs = []
    for entry in data if isinstance(data, list) else []:
        if (
            isinstance(entry, (list, tuple))
            and len(entry) == 2
            and all(isinstance(part, str) for part in entry)
            and entry[0]
        ):
            pairs.append((entry[0], entry[1]))
        else:
            logger.warning(f"Ignoring malformed correction entry: {entry!r}")

    logger.info(f"Loaded {len(pairs)} extra correction(s) from {path}")
    return pairs


def build_correction_table(
    extra: Iterable[tuple[str, str]] = (),
) -> list[tuple[re.Pattern, str]]:
    """Default table followed by any extra pairs, compiled."""
    return compile_corrections(list(DEFAULT_CORRECTIONS) + list(extra))
