"""Event processor for normalizing, deduplicating and ordering events."""
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from processor.date_normalizer import normalize_date
from processor.identifiers import assign_id
from processor.models import TBD, AggregationReport, Event, RawListing
from processor.text_utils import (
    looks_like_date_or_day,
    normalize_whitespace,
    strip_venue_marker,
)
from processor.venues import FAVORITE_VENUES, canonicalize_venue, is_favorite_venue

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor turning raw listings into normalized, deduplicated events."""

    MAX_ARTIST_LENGTH = 200
    MIN_FIELD_LENGTH = 3
    UPCOMING_DAYS = 14

    def __init__(
        self,
        today: Optional[Callable[[], date]] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the processor.

        Args:
            today: Callable returning the reference date for date resolution
            clock: Callable returning epoch seconds for identifier suffixes
        """
        self._today = today or date.today
        self._clock = clock

    def process_listings(self, listings: Iterable[RawListing]) -> List[Event]:
        """
        Convert raw listings into Events.

        Listings without a usable artist or venue are dropped; that is
        ordinary extraction noise and is only logged at debug level.

        Args:
            listings: Candidate listings from one source

        Returns:
            List of Event objects, in listing order
        """
        events = []
        total = 0

        for listing in listings:
            total += 1
            try:
                event = self._process_single_listing(listing)
                if event:
                    events.append(event)
            except Exception as e:
                logger.warning(
                    f"Failed to process listing '{listing.artist}': {e}"
                )
                continue

        logger.info(
            f"Processed {len(events)} valid events out of {total} listings"
        )
        return events

    def _process_single_listing(self, listing: RawListing) -> Optional[Event]:
        artist = normalize_whitespace(listing.artist)[:self.MAX_ARTIST_LENGTH]
        raw_venue = strip_venue_marker(normalize_whitespace(listing.venue))

        if not self._valid_field(artist) or not self._valid_field(raw_venue):
            logger.debug(
                f"Dropping listing from {listing.source}: "
                f"artist={artist!r} venue={raw_venue!r}"
            )
            return None

        venue = canonicalize_venue(raw_venue)
        event_date = normalize_date(
            listing.date_text, listing.context_text, today=self._today()
        )

        id_kwargs = {'clock': self._clock} if self._clock else {}
        event_id = assign_id(artist, venue, listing.date_text, **id_kwargs)

        return Event(
            id=event_id,
            artist=artist,
            venue=venue,
            date=event_date,
            time=normalize_whitespace(listing.time) or TBD,
            price=normalize_whitespace(listing.price) or TBD,
            source=listing.source,
            is_favorite_venue=is_favorite_venue(venue)
        )

    def _valid_field(self, value: str) -> bool:
        return len(value) >= self.MIN_FIELD_LENGTH and not looks_like_date_or_day(value)

    def deduplicate(self, events: Iterable[Event]) -> List[Event]:
        """
        Drop events whose composite key was already seen.

        The first occurrence wins, so the order of the input (source rank)
        decides which version of a duplicate is kept.

        Args:
            events: Events in source priority order

        Returns:
            Unique events in their original order
        """
        seen = set()
        unique = []

        for event in events:
            key = event.dedup_key()
            if key in seen:
                logger.debug(
                    f"Duplicate removed: {event.artist} at {event.venue} "
                    f"({event.source})"
                )
                continue
            seen.add(key)
            unique.append(event)

        return unique

    @staticmethod
    def sort_events(events: Iterable[Event]) -> List[Event]:
        """Order events by date, then venue name."""
        return sorted(events, key=lambda event: (event.date, event.venue))

    @staticmethod
    def venue_stats(events: Iterable[Event]) -> Dict[str, int]:
        """Count events per venue, busiest venue first."""
        counts = Counter(event.venue for event in events)
        return dict(counts.most_common())

    def summarize(self, events: List[Event], report: AggregationReport) -> None:
        """Fill the statistics section of a report from final events."""
        report.total_events = len(events)
        report.venue_stats = self.venue_stats(events)
        report.favorite_venue_events = sum(
            1 for event in events if event.is_favorite_venue
        )
        report.favorite_venues = [
            venue for venue in FAVORITE_VENUES if venue in report.venue_stats
        ]

    def filter_upcoming(
        self,
        events: Iterable[Event],
        today: Optional[date] = None,
        days: int = UPCOMING_DAYS
    ) -> List[Event]:
        """
        Keep events from today through the given number of days ahead.

        Args:
            events: Stored events
            today: Window start, defaults to the processor's current date
            days: Window length in days

        Returns:
            Events inside the window, sorted by date
        """
        start = today or self._today()
        end = start + timedelta(days=days)
        window = [
            event for event in events
            if start.isoformat() <= event.date <= end.isoformat()
        ]
        return sorted(window, key=lambda event: event.date)
