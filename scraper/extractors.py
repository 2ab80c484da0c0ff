"""Heuristic field extraction from listing pages."""
import logging
import re
from functools import partial
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from processor.cascade import Rule, first_match
from processor.models import RawListing
from processor.text_utils import (
    DAY_NAMES,
    DAY_PATTERN,
    FREE_PATTERN,
    MONTH_PATTERN,
    PRICE_PATTERN,
    find_price,
    find_time,
    looks_like_date_or_day,
    looks_like_time_marker,
    looks_like_venue_marker,
    normalize_whitespace,
)
from scraper.sources import ExtractionStrategy, SourceConfig

logger = logging.getLogger(__name__)

MIN_FIELD_LENGTH = 3
MIN_EVENT_LINE_LENGTH = 16
MAX_TIME_TEXT_LENGTH = 40
PRECEDING_HEADER_LOOKBACK = 3

# Date-like substrings searched for in free container text.
DATE_TEXT_PATTERNS = (
    re.compile(r'\b' + MONTH_PATTERN + r'\s+\d{1,2}(?:st|nd|rd|th)?(?:,?\s*\d{4})?'),
    re.compile(r'\b' + DAY_PATTERN),
    re.compile(r'\d{1,2}[/-]\d{1,2}[/-]\d{4}'),
    re.compile(r'\b(today|tomorrow)\b'),
)

RECURRING_RE = re.compile(r'\bevery\s+(sun|mon|tue|wed|thu|fri|sat)')

# Month-date headers only need to start the node text so trailing show
# counts are allowed; a bare day name must be the whole node.
HEADER_PATTERNS = (
    re.compile(
        r'^' + DAY_PATTERN + r',?\s*' + MONTH_PATTERN
        + r'\s+\d{1,2}(?:st|nd|rd|th)?(?:,?\s*\d{4})?\b'
    ),
    re.compile(r'^' + MONTH_PATTERN + r'\s+\d{1,2}(?:st|nd|rd|th)?(?:,?\s*\d{4})?\b'),
    re.compile(r'^\d{1,2}[/-]\d{1,2}[/-]\d{4}$'),
    re.compile(r'^' + DAY_PATTERN + r'\W*$'),
)

EVENT_LINE_PATTERNS = (
    re.compile(r'^(.+?)\s+@\s+(.+)$'),
    re.compile(r'^(.+?)\s+at\s+(.+)$'),
    re.compile(r'^(.+?)\s+-\s+(.+)$'),
)

_TRAILING_PUNCTUATION_RE = re.compile(r'[,\-\s]+$')


def _element_text(element: Tag) -> str:
    return normalize_whitespace(element.get_text(' '))


def _select_text(element: Tag, selector: str) -> Optional[str]:
    found = element.select_one(selector)
    if found is None:
        return None
    return _element_text(found)


def _is_artist_text(text: str) -> bool:
    return (
        len(text) >= MIN_FIELD_LENGTH
        and not looks_like_date_or_day(text)
        and not looks_like_venue_marker(text)
        and not looks_like_time_marker(text)
    )


def _is_venue_text(text: str) -> bool:
    return (
        len(text) >= MIN_FIELD_LENGTH
        and not looks_like_date_or_day(text)
        and not looks_like_time_marker(text)
    )


def _time_from_text(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    found = find_time(text)
    if found:
        return found
    if looks_like_time_marker(text) and len(text) <= MAX_TIME_TEXT_LENGTH:
        return text
    return None


def find_date_text(text: str) -> Optional[str]:
    """Return the first date-like substring of text, lower-cased."""
    lower = text.lower()
    for pattern in DATE_TEXT_PATTERNS:
        match = pattern.search(lower)
        if match:
            return match.group(0)
    return None


def _recurring_day(text: str) -> Optional[str]:
    match = RECURRING_RE.search(text.lower())
    if not match:
        return None
    prefix = match.group(1)
    return next(name.capitalize() for name in DAY_NAMES if name.startswith(prefix))


def _preceding_header_date(element: Tag) -> Optional[str]:
    for sibling in element.find_previous_siblings(True, limit=PRECEDING_HEADER_LOOKBACK):
        found = find_date_text(_element_text(sibling))
        if found:
            return found
    return None


class SelectorCascadeExtractor:
    """Extract listings from card-style pages using ordered selector cascades."""

    def __init__(self, config: SourceConfig):
        self.config = config
        self.artist_rules = [
            Rule(selector, partial(_select_text, selector=selector), _is_artist_text)
            for selector in config.artist_selectors
        ]
        self.venue_rules = [
            Rule(selector, partial(_select_text, selector=selector), _is_venue_text)
            for selector in config.venue_selectors
        ]
        self.date_rules = [
            Rule(selector, partial(_select_text, selector=selector))
            for selector in config.date_selectors
        ] + [
            Rule('recurring', lambda element: _recurring_day(_element_text(element))),
            Rule('container_text', lambda element: find_date_text(_element_text(element))),
            Rule('preceding_header', _preceding_header_date),
        ]
        self.time_rules = [
            Rule(selector, lambda element, selector=selector: _time_from_text(
                _select_text(element, selector)))
            for selector in config.time_selectors
        ] + [
            Rule('container_text', lambda element: find_time(_element_text(element))),
        ]
        self.price_rules = [
            Rule(selector, lambda element, selector=selector: find_price(
                _select_text(element, selector)))
            for selector in config.price_selectors
        ] + [
            Rule('container_text', lambda element: find_price(_element_text(element))),
        ]

    def extract(self, soup: BeautifulSoup) -> List[RawListing]:
        """
        Extract listings from the first container selector that yields any.

        Args:
            soup: Parsed page

        Returns:
            List of RawListing objects
        """
        for selector in self.config.container_selectors:
            elements = soup.select(selector)
            if not elements:
                continue

            logger.debug(
                f"{self.config.name}: {len(elements)} elements match '{selector}'"
            )
            listings = []
            for index, element in enumerate(elements):
                try:
                    listing = self._parse_container(element)
                    if listing:
                        listings.append(listing)
                except Exception as e:
                    logger.warning(
                        f"{self.config.name}: failed to parse element {index}: {e}"
                    )
                    continue

            if listings:
                logger.info(
                    f"{self.config.name}: extracted {len(listings)} listings "
                    f"with selector '{selector}'"
                )
                return listings

        logger.info(f"{self.config.name}: no listings found")
        return []

    def _parse_container(self, element: Tag) -> Optional[RawListing]:
        artist = first_match(self.artist_rules, element)
        venue = self.config.fixed_venue or first_match(self.venue_rules, element)
        if not artist or not venue:
            logger.debug(
                f"{self.config.name}: skipped container "
                f"(artist={artist!r}, venue={venue!r})"
            )
            return None

        return RawListing(
            artist=artist,
            venue=venue,
            date_text=first_match(self.date_rules, element) or '',
            context_text=_element_text(element),
            time=first_match(self.time_rules, element),
            price=first_match(self.price_rules, element),
            source=self.config.name
        )


class DateHeaderExtractor:
    """
    Extract listings from flat pages of date headers and "Artist @ Venue" lines.

    Nodes are scanned in document order. Each header node replaces the
    current date, and the event lines that follow are dated with it.
    """

    def __init__(self, config: SourceConfig):
        self.config = config

    def extract(self, soup: BeautifulSoup) -> List[RawListing]:
        listings = []
        current_date = ''

        for node in self._innermost_blocks(soup):
            text = _element_text(node)
            if len(text) < MIN_FIELD_LENGTH:
                continue

            if self.is_date_header(text):
                current_date = text
                logger.debug(f"{self.config.name}: date header '{text}'")
                continue

            if not current_date or len(text) < MIN_EVENT_LINE_LENGTH:
                continue

            try:
                listing = self.parse_event_line(text, current_date)
            except Exception as e:
                logger.warning(f"{self.config.name}: failed to parse line '{text[:60]}': {e}")
                continue
            if listing:
                listings.append(listing)

        logger.info(f"{self.config.name}: extracted {len(listings)} listings")
        return listings

    def _innermost_blocks(self, soup: BeautifulSoup) -> List[Tag]:
        tags = list(self.config.block_tags)
        return [node for node in soup.find_all(tags) if node.find(tags) is None]

    @staticmethod
    def is_date_header(text: str) -> bool:
        lower = text.lower().strip()
        return any(pattern.match(lower) for pattern in HEADER_PATTERNS)

    def parse_event_line(self, text: str, current_date: str) -> Optional[RawListing]:
        """
        Match a line against the event-line patterns in order.

        Args:
            text: Whitespace-normalized node text
            current_date: Text of the most recent date header

        Returns:
            RawListing for the first pattern whose groups pass the filters,
            or None
        """
        for pattern in EVENT_LINE_PATTERNS:
            match = pattern.match(text)
            if not match:
                continue

            artist = normalize_whitespace(match.group(1))
            venue_part = normalize_whitespace(match.group(2))
            if not self._accept_parts(artist, venue_part):
                continue

            venue, time_text, price_text = split_venue_details(venue_part)
            if not venue:
                return None

            return RawListing(
                artist=artist,
                venue=venue,
                date_text=current_date,
                context_text=text,
                time=time_text,
                price=price_text,
                source=self.config.name
            )
        return None

    @staticmethod
    def _accept_parts(artist: str, venue: str) -> bool:
        if len(artist) < MIN_FIELD_LENGTH or len(venue) < MIN_FIELD_LENGTH:
            return False
        if looks_like_date_or_day(artist) or looks_like_date_or_day(venue):
            return False
        if 'http' in artist.lower() or 'http' in venue.lower():
            return False
        return not looks_like_venue_marker(artist) and not looks_like_time_marker(artist)


def split_venue_details(venue_part: str) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Strip embedded time and price substrings out of venue text.

    Args:
        venue_part: Venue text possibly followed by time and price

    Returns:
        Tuple of (venue, time, price); time and price are None when absent
    """
    time_text = find_time(venue_part)
    if time_text:
        venue_part = venue_part.replace(time_text, ' ', 1)

    price_text = None
    price_match = PRICE_PATTERN.search(venue_part)
    if price_match:
        price_text = price_match.group(0)
        venue_part = venue_part.replace(price_text, ' ', 1)
    elif FREE_PATTERN.search(venue_part):
        price_text = 'Free'
        venue_part = FREE_PATTERN.sub(' ', venue_part, count=1)

    venue = _TRAILING_PUNCTUATION_RE.sub('', normalize_whitespace(venue_part))
    return venue, time_text, price_text


def extract_listings(html: str, config: SourceConfig) -> List[RawListing]:
    """
    Parse a page and extract candidate listings with the source's strategy.

    Args:
        html: Raw page content
        config: Source descriptor

    Returns:
        List of RawListing objects
    """
    soup = BeautifulSoup(html, 'html.parser')
    if config.strategy is ExtractionStrategy.DATE_HEADER:
        extractor = DateHeaderExtractor(config)
    else:
        extractor = SelectorCascadeExtractor(config)
    return extractor.extract(soup)
