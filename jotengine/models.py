"""
Data models for the text-to-task pipeline.
No external dependencies; pure Python dataclasses.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Priority(str, Enum):
    """Task priority as stored and returned to callers."""
    LOW = "low"
    MED = "med"
    HIGH = "high"


class Platform(str, Enum):
    """Client platforms that submit text or audio."""
    WEB = "web"
    ELECTRON = "electron"
    ANDROID = "android"
    IOS = "ios"


@dataclass(frozen=True)
class Task:
    """A task extracted from cleaned text. Immutable once built."""
    title: str
    due: Optional[str] = None           # YYYY-MM-DD
    tags: tuple[str, ...] = ()
    priority: Optional[Priority] = None

    def to_dict(self) -> dict:
        """Wire form: optional keys are omitted when empty."""
        data = {"title": self.title}
        if self.due:
            data["due"] = self.due
        if self.tags:
            data["tags"] = list(self.tags)
        if self.priority:
            data["priority"] = self.priority.value
        return data


@dataclass
class NLPResult:
    """Output of one cleaner + extractor run."""
    cleaned_text: str = ""
    tasks: list[Task] = field(default_factory=list)
    meta: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "cleanedText": self.cleaned_text,
            "tasks": [t.to_dict() for t in self.tasks],
            "meta": dict(self.meta),
        }


@dataclass
class TranscriptionResult:
    """Raw speech-to-text output from a transcription provider."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    raw_text: str = ""
    meta: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
