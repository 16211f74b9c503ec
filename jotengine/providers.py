"""
NLP provider: the deterministic cleaner + extractor behind one interface.

Request handlers and the CLI talk to DeterministicNLPProvider.process(),
so a different provider (an LLM, say) can slot in later without touching
the callers.
"""

import logging
from datetime import datetime, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .cleaner import clean_text
from .corrections import build_correction_table, load_corrections_file
from .extractor import extract_tasks
from .models import NLPResult

logger = logging.getLogger(__name__)

PROVIDER_NAME = "deterministic"
PROVIDER_VERSION = "1.0"


def resolve_timezone(name: Optional[str], fallback: str = "UTC"):
    """ZoneInfo for an IANA name, else the fallback zone, else UTC."""
    for candidate in (name, fallback):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {candidate!r}, trying fallback")
    return dt_timezone.utc


class DeterministicNLPProvider:
    """Rule-based text cleaning and task extraction. No network, no state."""

    name = PROVIDER_NAME

    def __init__(self, extra_corrections=(), default_timezone: str = "UTC"):
        self._corrections = build_correction_table(extra_corrections)
        self._default_timezone = default_timezone

    @classmethod
    def from_config(cls, config) -> "DeterministicNLPProvider":
        """Build a provider from EngineConfig, loading any extra corrections."""
        extra = load_corrections_file(config.corrections_file) if config.corrections_file else []
        return cls(extra_corrections=extra, default_timezone=config.default_timezone)

    def process(
        self,
        text: str,
        platform: str = "web",
        timezone: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> NLPResult:
        """Clean text and extract tasks.

        Relative dates resolve against `now` (default: current time) in the
        caller's timezone, so "tomorrow" means the user's tomorrow.
        """
        tz = resolve_timezone(timezone, self._default_timezone)
        if now is None:
            reference = datetime.now(tz)
        elif now.tzinfo is None:
            reference = now
        else:
            reference = now.astimezone(tz)

        cleaned = clean_text(text, self._corrections)
        tasks = extract_tasks(cleaned, reference)

        return NLPResult(
            cleaned_text=cleaned,
            tasks=tasks,
            meta={
                "provider": self.name,
                "version": PROVIDER_VERSION,
                "platform": platform,
                "timezone": str(tz),
                "processed_at": datetime.now(dt_timezone.utc).isoformat(),
                "taskCount": len(tasks),
            },
        )
