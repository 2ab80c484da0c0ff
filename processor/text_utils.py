"""Text helpers for classifying loosely-delimited listing fragments."""
import re
from typing import Optional

DAY_NAMES = (
    'sunday', 'monday', 'tuesday', 'wednesday',
    'thursday', 'friday', 'saturday'
)

MONTH_ABBREVIATIONS = (
    'jan', 'feb', 'mar', 'apr', 'may', 'jun',
    'jul', 'aug', 'sep', 'oct', 'nov', 'dec'
)

MONTH_PATTERN = (
    r'(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?'
    r'|aug(?:ust)?|sept?(?:ember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b\.?'
)
DAY_PATTERN = r'(sunday|monday|tuesday|wednesday|thursday|friday|saturday)'

NUMERIC_DATE_RE = re.compile(r'(\d{1,2})[/-](\d{1,2})[/-](\d{4})')

TIME_PATTERN = re.compile(r'\d{1,2}(?::\d{2})?\s*(?:am|pm)\b', re.IGNORECASE)
PRICE_PATTERN = re.compile(r'\$\d+(?:\.\d{2})?(?:\s*-\s*\$\d+(?:\.\d{2})?)?')
FREE_PATTERN = re.compile(r'\bfree\b', re.IGNORECASE)

_WHITESPACE_RE = re.compile(r'\s+')
_MONTH_DATE_RE = re.compile(
    r'^' + MONTH_PATTERN + r'(?:\s+\d{1,2}(?:st|nd|rd|th)?\b.*)?$',
    re.IGNORECASE
)
_DAY_DATE_RE = re.compile(
    r'^(?:' + DAY_PATTERN + r'|sun|mon|tues?|wed|thu(?:rs?)?|fri|sat)\.?,?\s+'
    + MONTH_PATTERN + r'(?:\s+\d{1,2}(?:st|nd|rd|th)?\b.*)?$',
    re.IGNORECASE
)
_NUMERIC_ONLY_RE = re.compile(r'^[\d/\-\s]+$')
_CLOCK_RE = re.compile(r'\d{1,2}:\d{2}')
_MERIDIEM_RE = re.compile(r'(?<![a-z])[ap]\.?m\b\.?', re.IGNORECASE)
_TIME_LEAD_RE = re.compile(r'^(doors|starts|begins)', re.IGNORECASE)
_VENUE_MARKER_RE = re.compile(
    r'^(?:at\s|@|venue:|location:|where:)',
    re.IGNORECASE
)


def normalize_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace to single spaces and trim the ends."""
    if not text:
        return ''
    return _WHITESPACE_RE.sub(' ', text).strip()


def looks_like_date_or_day(text: Optional[str]) -> bool:
    """
    Check whether a fragment is a date or a day name rather than content.

    Args:
        text: Fragment to classify

    Returns:
        True for day names, month-name dates, numeric dates, "today",
        "tomorrow", or text made only of digits and date separators
    """
    if not text:
        return False

    lower = normalize_whitespace(text).lower()
    if not lower:
        return False

    if lower.rstrip(',') in DAY_NAMES:
        return True
    if lower in ('today', 'tomorrow'):
        return True
    if NUMERIC_DATE_RE.fullmatch(lower):
        return True
    if _MONTH_DATE_RE.match(lower) or _DAY_DATE_RE.match(lower):
        return True

    return bool(_NUMERIC_ONLY_RE.match(lower))


def looks_like_venue_marker(text: Optional[str]) -> bool:
    """Check whether a fragment starts with a venue marker like "at" or "@"."""
    if not text:
        return False
    return bool(_VENUE_MARKER_RE.match(text.strip()))


def looks_like_time_marker(text: Optional[str]) -> bool:
    """Check whether a fragment carries a clock time, am/pm, or a doors/starts lead."""
    if not text:
        return False
    if _CLOCK_RE.search(text):
        return True
    if _MERIDIEM_RE.search(text):
        return True
    return bool(_TIME_LEAD_RE.match(text.strip()))


def strip_venue_marker(text: str) -> str:
    """Remove a leading venue marker word from a venue fragment."""
    return _VENUE_MARKER_RE.sub('', text.strip(), count=1).strip()


def find_time(text: Optional[str]) -> Optional[str]:
    """Return the first time-of-day substring in text, if any."""
    if not text:
        return None
    match = TIME_PATTERN.search(text)
    return match.group(0) if match else None


def find_price(text: Optional[str]) -> Optional[str]:
    """Return the first price substring in text, "Free" for free shows."""
    if not text:
        return None
    match = PRICE_PATTERN.search(text)
    if match:
        return match.group(0)
    if FREE_PATTERN.search(text):
        return 'Free'
    return None
