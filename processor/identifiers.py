"""Synthetic display identifiers for events."""
import re
import time
from typing import Callable

ID_PREFIX_LENGTH = 16
ID_SUFFIX_LENGTH = 4

_NON_ALPHANUMERIC_RE = re.compile(r'[^a-zA-Z0-9]')


def assign_id(
    artist: str,
    venue: str,
    raw_date_text: str,
    clock: Callable[[], float] = time.time
) -> str:
    """
    Generate a display identifier for an event.

    The first 16 alphanumeric characters of artist, venue and raw date text
    are followed by the last four digits of the current time in milliseconds.
    Identifiers are not unique keys; deduplication uses the composite
    artist/venue/date key instead.

    Args:
        artist: Artist display name
        venue: Canonical venue name
        raw_date_text: Date text as it appeared in the listing
        clock: Source of the current epoch time in seconds

    Returns:
        Identifier string
    """
    composite = f"{artist}-{venue}-{raw_date_text or ''}"
    prefix = _NON_ALPHANUMERIC_RE.sub('', composite)[:ID_PREFIX_LENGTH]
    suffix = str(int(clock() * 1000))[-ID_SUFFIX_LENGTH:]
    return prefix + suffix
