"""
Due-date resolution for natural-language date expressions.

parse_due() maps phrases like "tomorrow", "next Wednesday", "March 3" or
"in 2 days" to an ISO calendar date relative to an injected reference time.
It never reads the wall clock itself, so results are reproducible.

Time of day is discarded: "tonight" resolves to the reference date only.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
FRIDAY = 4

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12,
}

_TODAY_RE = re.compile(r"\b(?:today|tonight|this evening)\b", re.IGNORECASE)
_TOMORROW_RE = re.compile(r"\b(?:tomorrow|next day)\b", re.IGNORECASE)
_THIS_WEEK_RE = re.compile(r"\b(?:this week|by friday|end of (?:the )?week)\b", re.IGNORECASE)
_NEXT_WEEK_RE = re.compile(r"\b(?:next week|following week)\b", re.IGNORECASE)
_WEEKDAY_RE = re.compile(
    r"\b(?:(next|this)\s+)?(" + "|".join(WEEKDAYS) + r")\b", re.IGNORECASE
)
_MONTH_DAY_RE = re.compile(
    r"\b(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
    r"\.?\s+(\d{1,2})(?:st|nd|rd|th)?\b",
    re.IGNORECASE,
)
_NUMERIC_RE = re.compile(
    r"\b(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?\b|\b(\d{4})-(\d{1,2})-(\d{1,2})\b"
)
_RELATIVE_RE = re.compile(
    r"\bin\s+(\d+|" + "|".join(_NUMBER_WORDS) + r")\s+(hour|day|week)s?\b",
    re.IGNORECASE,
)


def _as_datetime(reference_now) -> Optional[datetime]:
    if isinstance(reference_now, datetime):
        return reference_now
    if isinstance(reference_now, date):
        return datetime(reference_now.year, reference_now.month, reference_now.day)
    return None


def _today(text: str, now: datetime) -> Optional[date]:
    if _TODAY_RE.search(text):
        return now.date()
    return None


def _tomorrow(text: str, now: datetime) -> Optional[date]:
    if _TOMORROW_RE.search(text):
        return now.date() + timedelta(days=1)
    return None


def _this_week(text: str, now: datetime) -> Optional[date]:
    """Upcoming Friday; on a Friday, the one after."""
    if _THIS_WEEK_RE.search(text):
        offset = (FRIDAY - now.weekday()) % 7 or 7
        return now.date() + timedelta(days=offset)
    return None


def _next_week(text: str, now: datetime) -> Optional[date]:
    if _NEXT_WEEK_RE.search(text):
        return now.date() + timedelta(days=7)
    return None


def _weekday(text: str, now: datetime) -> Optional[date]:
    match = _WEEKDAY_RE.search(text)
    if not match:
        return None
    modifier = (match.group(1) or "").lower()
    target = WEEKDAYS.index(match.group(2).lower())

    offset = (target - now.weekday()) % 7
    if modifier == "next" or (offset == 0 and modifier != "this"):
        offset += 7
    return now.date() + timedelta(days=offset)


def _month_day(text: str, now: datetime) -> Optional[date]:
    """"January 15" in the reference year, rolled to next year once passed."""
    match = _MONTH_DAY_RE.search(text)
    if not match:
        return None
    month = MONTHS[match.group(1).lower()[:3]]
    day = int(match.group(2))

    target = date(now.year, month, day)
    if target < now.date():
        target = date(now.year + 1, month, day)
    return target


def _numeric(text: str, now: datetime) -> Optional[date]:
    """MM/DD[/YY[YY]] (US order) or YYYY-MM-DD."""
    match = _NUMERIC_RE.search(text)
    if not match:
        return None
    if match.group(4):
        return date(int(match.group(4)), int(match.group(5)), int(match.group(6)))

    month = int(match.group(1))
    day = int(match.group(2))
    year = int(match.group(3)) if match.group(3) else now.year
    if year < 100:
        year += 2000
    return date(year, month, day)


def _relative(text: str, now: datetime) -> Optional[date]:
    match = _RELATIVE_RE.search(text)
    if not match:
        return None
    amount_text = match.group(1).lower()
    amount = int(amount_text) if amount_text.isdigit() else _NUMBER_WORDS[amount_text]
    unit = match.group(2).lower()

    if unit == "hour":
        delta = timedelta(hours=amount)
    elif unit == "day":
        delta = timedelta(days=amount)
    else:
        delta = timedelta(weeks=amount)
    return (now + delta).date()


# First rule that resolves wins.
DUE_RULES: list[tuple[str, Callable[[str, datetime], Optional[date]]]] = [
    ("today", _today),
    ("tomorrow", _tomorrow),
    ("this_week", _this_week),
    ("next_week", _next_week),
    ("weekday", _weekday),
    ("month_day", _month_day),
    ("numeric", _numeric),
    ("relative", _relative),
]


def parse_due(sentence, reference_now) -> Optional[str]:
    """Resolve the first date expression in a sentence to YYYY-MM-DD.

    Args:
        sentence: Free text to scan.
        reference_now: The "now" that relative phrases are measured from.
            A date is treated as midnight; an aware datetime resolves in
            its own timezone.

    Returns:
        ISO date string, or None when nothing resolves. A rule whose
        match builds an impossible date (13/45, February 30) is skipped
        and later rules still get a chance.
    """
    if not sentence or not isinstance(sentence, str):
        return None
    now = _as_datetime(reference_now)
    if now is None:
        logger.debug(f"parse_due called without a usable reference time: {reference_now!r}")
        return None

    for name, rule in DUE_RULES:
        try:
            resolved = rule(sentence, now)
        except (ValueError, OverflowError) as e:
            logger.debug(f"Rule {name} matched but produced no valid date: {e}")
            continue
        if resolved is not None:
            return resolved.isoformat()
    return None
