"""
Jot Engine

Deterministic text-to-task pipeline for voice and typed notes.
Raw text → cleaned text → structured tasks (title, due, tags, priority).

No FastAPI dependency; the HTTP layer lives in jotapi.
Pure function interface: clean_text(raw) and extract_tasks(cleaned, now).
"""

__version__ = "1.0.0"

from .cleaner import clean_text
from .dates import parse_due
from .extractor import extract_tasks, dedupe_tasks
from .models import Priority, Platform, Task, NLPResult, TranscriptionResult
from .providers import DeterministicNLPProvider
