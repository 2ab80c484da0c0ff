"""Static catalog of listing sources and their extraction settings."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

CONTAINER_SELECTORS = (
    '.event-item', '.show-item', '.concert-item', '.listing-item',
    '.event', '.show', '.concert', '.listing',
    '[class*="event-"]', '[class*="show-"]', '[class*="concert-"]',
    '.calendar-event', '.upcoming-show', '.event-listing',
    'article', '.post', '.entry'
)

ARTIST_SELECTORS = (
    '.artist-name', '.headline', '.artist', '.performer', '.band',
    '.event-title', '.title', '.name', 'h1', 'h2', 'h3', 'h4',
    '[class*="artist"]', '[class*="headline"]', '[class*="title"]',
    '[class*="name"]', '[class*="performer"]'
)

VENUE_SELECTORS = (
    '.venue-name', '.venue', '.location', '.place',
    '[class*="venue"]', '[class*="location"]', '[class*="place"]'
)

DATE_SELECTORS = (
    '.date', '.event-date', '.show-date', '.when',
    '[class*="date"]', '[class*="when"]', '[class*="time"]',
    '.datetime', '.schedule'
)

TIME_SELECTORS = (
    '.time', '.show-time', '.start-time', '.doors',
    '[class*="time"]', '.schedule'
)

PRICE_SELECTORS = (
    '.price', '.cost', '.ticket-price', '.admission',
    '[class*="price"]', '[class*="cost"]', '[class*="ticket"]'
)

BLOCK_TAGS = ('h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'p', 'li', 'tr', 'dt', 'dd', 'div')


class ExtractionStrategy(Enum):
    SELECTOR_CASCADE = 'selector_cascade'
    DATE_HEADER = 'date_header'


@dataclass(frozen=True)
class SourceConfig:
    """
    Descriptor for one listing source.

    Attributes:
        name: Display name recorded on events and in the report
        url: Page to fetch
        strategy: Extraction variant used for the page
        source_type: "venue", "general" or "aggregator"
        fixed_venue: Venue for single-venue sites; skips venue extraction
        container_selectors: Ordered selectors for event containers
        artist_selectors: Ordered sub-selectors for the artist field
        venue_selectors: Ordered sub-selectors for the venue field
        date_selectors: Ordered sub-selectors for the date fragment
        time_selectors: Ordered sub-selectors for the time field
        price_selectors: Ordered sub-selectors for the price field
        block_tags: Tags scanned by the date-header strategy
    """
    name: str
    url: str
    strategy: ExtractionStrategy = ExtractionStrategy.SELECTOR_CASCADE
    source_type: str = 'general'
    fixed_venue: Optional[str] = None
    container_selectors: Tuple[str, ...] = CONTAINER_SELECTORS
    artist_selectors: Tuple[str, ...] = ARTIST_SELECTORS
    venue_selectors: Tuple[str, ...] = VENUE_SELECTORS
    date_selectors: Tuple[str, ...] = DATE_SELECTORS
    time_selectors: Tuple[str, ...] = TIME_SELECTORS
    price_selectors: Tuple[str, ...] = PRICE_SELECTORS
    block_tags: Tuple[str, ...] = BLOCK_TAGS


SOURCES: Tuple[SourceConfig, ...] = (
    SourceConfig(
        name="Emo's Austin",
        url='https://www.emosaustin.com/shows',
        source_type='venue',
        fixed_venue="Emo's Austin"
    ),
    SourceConfig(
        name='ACL Live',
        url='https://www.acllive.com/events/',
        source_type='venue',
        fixed_venue='ACL Live at The Moody Theater'
    ),
    SourceConfig(
        name='Scoot Inn',
        url='https://www.scootinnaustin.com/shows',
        source_type='venue',
        fixed_venue='Scoot Inn'
    ),
    SourceConfig(
        name='Do512',
        url='https://do512.com/events/live-music/',
        source_type='general',
        container_selectors=('.ds-listing.event-card.ds-event-category-live-music',),
        artist_selectors=('.ds-listing-event-title-text', '.ds-byline', '.summary', 'h3', 'h2'),
        venue_selectors=('.ds-venue-name',),
        time_selectors=('.ds-listing-details',)
    ),
    SourceConfig(
        name='Austin Texas',
        url='https://www.austintexas.org/music-scene/concerts-in-austin/',
        source_type='general'
    ),
    SourceConfig(
        name='Austin Showlists',
        url='https://austin.showlists.net/',
        strategy=ExtractionStrategy.DATE_HEADER,
        source_type='aggregator'
    ),
)


def get_source(name: str) -> SourceConfig:
    """
    Look up a configured source by name (case-insensitive).

    Raises:
        KeyError: If no source has that name
    """
    for source in SOURCES:
        if source.name.lower() == name.lower():
            return source
    raise KeyError(f"Unknown source: {name}")
