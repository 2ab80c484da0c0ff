"""Data models for event extraction and aggregation."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

DEFAULT_GENRE = 'Live Music'
TBD = 'TBD'


@dataclass
class RawListing:
    """Candidate event as extracted from a source page, before normalization."""
    artist: str
    venue: str
    date_text: str
    context_text: str
    time: Optional[str]
    price: Optional[str]
    source: str


@dataclass(frozen=True)
class Event:
    """Normalized live-music event."""
    id: str
    artist: str
    venue: str
    date: str
    time: str
    price: str
    source: str
    is_favorite_venue: bool
    genre: str = DEFAULT_GENRE

    def dedup_key(self) -> str:
        """Composite key identifying the same real-world event across sources."""
        return f"{self.artist.lower()}|{self.venue.lower()}|{self.date}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'artist': self.artist,
            'venue': self.venue,
            'date': self.date,
            'time': self.time,
            'price': self.price,
            'genre': self.genre,
            'isFavoriteVenue': self.is_favorite_venue,
            'source': self.source
        }

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> 'Event':
        """
        Build an Event from its stored dictionary form.

        Raises:
            KeyError: If a required key is missing
        """
        return cls(
            id=str(item['id']),
            artist=item['artist'],
            venue=item['venue'],
            date=item['date'],
            time=item.get('time') or TBD,
            price=item.get('price') or TBD,
            source=item.get('source', ''),
            is_favorite_venue=bool(item.get('isFavoriteVenue', False)),
            genre=item.get('genre') or DEFAULT_GENRE
        )


@dataclass
class SourceResult:
    """Outcome of running one source adapter: events or a failure reason."""
    source: str
    source_type: str
    rank: int
    events: List[Event] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class AggregationReport:
    """Per-run accounting of source outcomes and venue statistics."""
    successful: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)
    total_events: int = 0
    venue_stats: Dict[str, int] = field(default_factory=dict)
    favorite_venue_events: int = 0
    favorite_venues: List[str] = field(default_factory=list)

    def record(self, result: SourceResult) -> None:
        if result.succeeded:
            self.successful.append({
                'source': result.source,
                'count': len(result.events),
                'type': result.source_type
            })
        else:
            self.failed.append({
                'source': result.source,
                'error': result.error,
                'type': result.source_type
            })

    def to_dict(self) -> Dict[str, Any]:
        return {
            'successful': list(self.successful),
            'failed': list(self.failed),
            'totalEvents': self.total_events,
            'venueStats': dict(self.venue_stats),
            'favoriteVenueEvents': self.favorite_venue_events,
            'favoriteVenues': list(self.favorite_venues)
        }


@dataclass
class AggregationResult:
    """Final event set of one aggregation run with its report."""
    events: List[Event]
    report: AggregationReport

    def to_document(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Build the full replacement document handed to persistence."""
        now = now or datetime.now()
        return {
            'events': [event.to_dict() for event in self.events],
            'lastUpdated': now.isoformat(),
            'totalEvents': len(self.events),
            'report': self.report.to_dict()
        }
