"""Common behaviour of the flat event document stores."""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List

from processor.models import Event

logger = logging.getLogger(__name__)


def empty_document() -> Dict[str, Any]:
    return {'events': [], 'lastUpdated': None, 'totalEvents': 0}


def events_from_document(document: Dict[str, Any]) -> List[Event]:
    """
    Load the events of a stored document.

    Args:
        document: Document as returned by a store's read()

    Returns:
        List of Event objects; malformed items are skipped
    """
    events = []
    for item in document.get('events', []):
        try:
            events.append(Event.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed stored event: {e}")
    return events


class DocumentStore(ABC):
    """Store holding a single JSON document of events, replaced as a whole."""

    @abstractmethod
    def read(self) -> Dict[str, Any]:
        """Return the stored document, or an empty document if none exists."""

    @abstractmethod
    def replace(self, document: Dict[str, Any]) -> None:
        """Overwrite the stored document."""

    def read_events(self) -> List[Event]:
        return events_from_document(self.read())

    def append(self, events: Iterable[Event]) -> int:
        """
        Add events whose id is not stored yet.

        Args:
            events: Events to add

        Returns:
            Number of events added
        """
        document = self.read()
        stored = document.get('events', [])
        existing_ids = {item.get('id') for item in stored}

        added = [event.to_dict() for event in events if event.id not in existing_ids]
        document['events'] = stored + added
        document['totalEvents'] = len(document['events'])
        document['lastUpdated'] = datetime.now().isoformat()

        self.replace(document)
        logger.info(f"Appended {len(added)} new events")
        return len(added)
