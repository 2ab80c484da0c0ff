"""Resolve loosely formatted date fragments to ISO calendar dates."""
import logging
import re
from datetime import date, timedelta
from typing import Optional

from processor.cascade import Rule, first_match
from processor.text_utils import (
    DAY_NAMES,
    MONTH_ABBREVIATIONS,
    MONTH_PATTERN,
    NUMERIC_DATE_RE,
)

logger = logging.getLogger(__name__)

FALLBACK_DAYS_AHEAD = 7

FULL_DATE_RE = re.compile(
    r'\b' + MONTH_PATTERN + r'\s+(\d{1,2})(?:st|nd|rd|th)?\s*,?\s*(\d{4})'
)
MONTH_DAY_RE = re.compile(
    r'\b' + MONTH_PATTERN + r'\s+(\d{1,2})(?:st|nd|rd|th)?\b'
)
ISO_DATE_RE = re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b')
RELATIVE_RE = re.compile(r'\b(today|tonight|tomorrow)\b')


def default_date(today: Optional[date] = None) -> str:
    """Return the fallback date: one week from today."""
    today = today or date.today()
    return (today + timedelta(days=FALLBACK_DAYS_AHEAD)).isoformat()


def _month_number(name: str) -> int:
    return MONTH_ABBREVIATIONS.index(name[:3]) + 1


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _full_date(text: str, today: date) -> Optional[date]:
    match = FULL_DATE_RE.search(text)
    if not match:
        return None
    month_name, day, year = match.groups()
    return _safe_date(int(year), _month_number(month_name), int(day))


def _numeric_date(text: str, today: date) -> Optional[date]:
    match = NUMERIC_DATE_RE.search(text)
    if not match:
        return None
    month, day, year = match.groups()
    return _safe_date(int(year), int(month), int(day))


def _iso_date(text: str, today: date) -> Optional[date]:
    match = ISO_DATE_RE.search(text)
    if not match:
        return None
    year, month, day = match.groups()
    return _safe_date(int(year), int(month), int(day))


def _month_day(text: str, today: date) -> Optional[date]:
    match = MONTH_DAY_RE.search(text)
    if not match:
        return None
    month_name, day = match.groups()
    month = _month_number(month_name)

    candidate = _safe_date(today.year, month, int(day))
    if candidate and candidate < today:
        candidate = _safe_date(today.year + 1, month, int(day))
    return candidate


def _relative_day(text: str, today: date) -> Optional[date]:
    match = RELATIVE_RE.search(text)
    if not match:
        return None
    if match.group(1) == 'tomorrow':
        return today + timedelta(days=1)
    return today


def _day_name(text: str, today: date) -> Optional[date]:
    # Python weekday(): Monday == 0; DAY_NAMES starts on Sunday.
    for index, name in enumerate(DAY_NAMES):
        if name in text:
            target_weekday = (index - 1) % 7
            days_until = (target_weekday - today.weekday()) % 7
            if days_until == 0:
                days_until = 7
            return today + timedelta(days=days_until)
    return None


# Priority order: most specific literal dates first, bare day names last.
# The third field restricts a strategy to the date fragment.
STRATEGIES = (
    ('full_date', _full_date, False),
    ('numeric_date', _numeric_date, False),
    ('iso_date', _iso_date, False),
    ('month_day', _month_day, False),
    ('relative_day', _relative_day, True),
    ('day_name', _day_name, False),
)


def normalize_date(
    fragment: Optional[str],
    context_text: Optional[str] = '',
    today: Optional[date] = None
) -> str:
    """
    Normalize a raw date fragment to ISO 8601 format (YYYY-MM-DD).

    The fragment and its surrounding context are searched together, except
    for "today"/"tonight"/"tomorrow", which only count inside the fragment.
    Strategies are tried in priority order and the first one that yields a
    real calendar date wins. This function never fails: when nothing
    matches, the date one week from today is returned.

    Args:
        fragment: Raw date text pulled from the listing (may be empty)
        context_text: Surrounding listing text
        today: Reference date, defaults to the current local date

    Returns:
        ISO 8601 formatted date string
    """
    today = today or date.today()
    fragment_text = (fragment or '').lower().strip()
    text = f"{fragment_text} {(context_text or '').lower()}".strip()
    if not text:
        return default_date(today)

    rules = [
        Rule(
            name,
            lambda subject, strategy=strategy, fragment_only=fragment_only: strategy(
                subject[0] if fragment_only else subject[1], today
            )
        )
        for name, strategy, fragment_only in STRATEGIES
    ]
    resolved = first_match(rules, (fragment_text, text))
    if resolved is None:
        logger.debug(f"No date pattern in {text[:80]!r}, using fallback")
        return default_date(today)
    return resolved.isoformat()
