"""
Rule-based task extraction from cleaned text.

Each sentence is split into clauses, every clause is matched against an
ordered table of action patterns, and each match becomes a candidate task
with its own tags, due date and priority. The pattern table overlaps on
purpose to catch loosely structured speech; dedupe_tasks() absorbs the
resulting duplicates.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from .dates import MONTHS, parse_due
from .models import Priority, Task

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 3

MODALS = ["should", "need to", "have to", "must", "remember to", "don't forget to"]


@dataclass(frozen=True)
class ActionPattern:
    name: str
    regex: re.Pattern
    priority: Priority


def _verb_pattern(verbs: str, anchored: bool = False) -> re.Pattern:
    """Match a verb group plus everything after it; the verb stays in the title."""
    prefix = r"^" if anchored else r"\b"
    return re.compile(prefix + r"(?P<title>(?:" + verbs + r")\s+.+)", re.IGNORECASE)


# Order is the tie-break order: candidates are emitted in this sequence and
# the first one to produce a title wins deduplication.
ACTION_PATTERNS: list[ActionPattern] = [
    ActionPattern(
        "modal",
        re.compile(r"\b(?:" + "|".join(MODALS) + r")\s+(?P<title>.+)", re.IGNORECASE),
        Priority.MED,
    ),
    ActionPattern("contact", _verb_pattern(r"call|email|text|message|contact"), Priority.MED),
    ActionPattern("shopping", _verb_pattern(r"buy|purchase|get|pick up|grab"), Priority.LOW),
    ActionPattern("progress", _verb_pattern(r"finish|complete|do|work on|start"), Priority.MED),
    ActionPattern("planning", _verb_pattern(r"schedule|book|arrange|plan"), Priority.MED),
    ActionPattern("review", _verb_pattern(r"review|check|look at|examine"), Priority.LOW),
    ActionPattern("delivery", _verb_pattern(r"submit|send|deliver|share"), Priority.HIGH),
    ActionPattern("upkeep", _verb_pattern(r"pay|renew|update|fix|repair"), Priority.HIGH),
    ActionPattern("create", _verb_pattern(r"make|create|write|prepare", anchored=True), Priority.MED),
    ActionPattern("find", _verb_pattern(r"find|search|look for", anchored=True), Priority.LOW),
    ActionPattern("tidy", _verb_pattern(r"clean|organize|sort", anchored=True), Priority.LOW),
]

LIST_ITEM_RE = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s*(?P<title>.+)")
LIST_ITEM_PRIORITY = Priority.MED

# Explicit markers first, then contextual hints. First hit wins.
PRIORITY_MARKERS: list[tuple[re.Pattern, Priority]] = [
    (re.compile(r"!|\b(?:p0|urgent|asap|critical)\b", re.IGNORECASE), Priority.HIGH),
    (re.compile(r"\b(?:p1|important|priority)\b", re.IGNORECASE), Priority.HIGH),
    (re.compile(r"\b(?:p2|medium|normal)\b", re.IGNORECASE), Priority.MED),
    (re.compile(r"\b(?:p3|low|minor|someday)\b", re.IGNORECASE), Priority.LOW),
    (re.compile(r"\b(?:deadline|target date|due|must|emergency)\b", re.IGNORECASE), Priority.HIGH),
    (re.compile(r"\b(?:should|need|remember)\b", re.IGNORECASE), Priority.MED),
    (re.compile(r"\b(?:maybe|consider|think about|eventually)\b", re.IGNORECASE), Priority.LOW),
]

HASHTAG_RE = re.compile(r"#(\w+)")
_PRIORITY_TOKEN_RE = re.compile(r"\bp[0-3]\b|!", re.IGNORECASE)

# A period inside a decimal ("12.50") or after a month abbreviation ("Sept.")
# does not end a sentence. "may" is left out since "May." is usually an ending.
_ABBREVIATED_MONTHS = [m for m in MONTHS if m != "may"]
_INNER_PERIOD = (
    r"(?<=\d)\.(?=\d)"
    r"|(?<=\b(?:" + "|".join(_ABBREVIATED_MONTHS) + r"))\."
    r"|(?<=\bsept)\."
)

# Sentence-like units: an optional numeric bullet at line start, then text up
# to the terminating punctuation or line break.
_SENTENCE_RE = re.compile(
    r"(?:^[ \t]*\d+[.)][ \t]+)?(?:[^.!?\n]|" + _INNER_PERIOD + r")+[.!?]*",
    re.MULTILINE | re.IGNORECASE,
)

_ACTION_START = (
    r"(?:" + "|".join(MODALS) + r"|call|email|text|message|contact|buy|purchase|get|"
    r"pick up|grab|finish|complete|do|work on|start|schedule|book|arrange|plan|"
    r"review|check|look at|examine|submit|send|deliver|share|pay|renew|update|"
    r"fix|repair|make|create|write|prepare|find|search|look for|clean|organize|"
    r"sort|remind me to)\b"
)
_CLAUSE_SPLIT_RE = re.compile(
    r"\s*(?:,\s*and then|,\s*then|,\s*and|,|;|\band then\b|\bafter that\b|\bthen\b|\band\b)\s+"
    r"(?=(?:(?:i|we|also)\s+)?" + _ACTION_START + r")",
    re.IGNORECASE,
)


def split_sentences(text: str) -> list[str]:
    """Split text into sentence-like units, keeping terminal punctuation."""
    return [m.group(0).strip() for m in _SENTENCE_RE.finditer(text) if m.group(0).strip(" \t.!?")]


def split_clauses(sentence: str) -> list[str]:
    """Split a sentence where a conjunction introduces a new action.

    "call the doctor tomorrow and buy groceries today" becomes two clauses.
    A trailing "!" belongs to the whole sentence, so every clause keeps it.
    """
    body = sentence.rstrip(".!?")
    emphatic = "!" in sentence[len(body):]
    clauses = [c.strip() for c in _CLAUSE_SPLIT_RE.split(body) if c.strip()]
    if emphatic:
        clauses = [c + "!" for c in clauses]
    return clauses


def extract_hashtags(text: str) -> tuple[str, ...]:
    """Lowercased hashtag bodies, first occurrence order, no repeats."""
    tags = []
    for tag in HASHTAG_RE.findall(text):
        tag = tag.lower()
        if tag not in tags:
            tags.append(tag)
    return tuple(tags)


def extract_priority(text: str) -> Optional[Priority]:
    """Priority implied by explicit markers or context words, if any."""
    for regex, priority in PRIORITY_MARKERS:
        if regex.search(text):
            return priority
    return None


def clean_title(text: str) -> str:
    """Strip hashtags, priority tokens and trailing punctuation from a title."""
    title = HASHTAG_RE.sub("", text)
    title = _PRIORITY_TOKEN_RE.sub("", title)
    title = re.sub(r"\s+", " ", title)
    return title.strip(" \t,;:.!?-")


def normalize_title(title: str) -> str:
    """Key used for deduplication."""
    key = re.sub(r"[^a-z0-9\s]", "", title.lower())
    return re.sub(r"\s+", " ", key).strip()


def dedupe_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Drop tasks whose normalised title was already seen; keep first occurrence."""
    seen = set()
    unique = []
    for task in tasks:
        key = normalize_title(task.title)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(task)
    return unique


def _candidate_texts(clause: str) -> list[tuple[str, Priority]]:
    """Raw (text, default priority) candidates for one clause, in table order."""
    candidates = []
    for pattern in ACTION_PATTERNS:
        for match in pattern.regex.finditer(clause):
            candidates.append((match.group("title"), pattern.priority))

    list_match = LIST_ITEM_RE.match(clause)
    if list_match:
        candidates.append((list_match.group("title"), LIST_ITEM_PRIORITY))
    return candidates


def _build_task(raw: str, default: Priority, clause: str, sentence: str,
                now: datetime) -> Optional[Task]:
    title = clean_title(raw)
    if len(title) < MIN_TITLE_LENGTH:
        return None
    # Clause date first, then the whole sentence.
    return Task(
        title=title,
        due=parse_due(clause, now) or parse_due(sentence, now),
        tags=extract_hashtags(raw),
        priority=extract_priority(clause) or default,
    )


def extract_tasks(cleaned_text, reference_now: Optional[datetime] = None) -> list[Task]:
    """Extract structured tasks from cleaned text.

    Args:
        cleaned_text: Output of clean_text(); raw text also works.
        reference_now: Reference time for relative dates. Defaults to now.

    Returns:
        Deduplicated tasks in order of first occurrence. Empty when the
        input is empty, not a string, or has no recognised action.
    """
    if not cleaned_text or not isinstance(cleaned_text, str):
        return []
    now = reference_now or datetime.now()

    candidates = []
    for sentence in split_sentences(cleaned_text):
        for clause in split_clauses(sentence):
            for raw, default in _candidate_texts(clause):
                task = _build_task(raw, default, clause, sentence, now)
                if task:
                    candidates.append(task)

    tasks = dedupe_tasks(candidates)
    logger.debug(f"Extracted {len(tasks)} task(s) from {len(candidates)} candidate(s)")
    return tasks
