"""Venue catalog and canonicalization of scraped venue names."""
import logging
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from processor.text_utils import normalize_whitespace

logger = logging.getLogger(__name__)

UNKNOWN_VENUE = 'Unknown Venue'

# Canonical name -> lowercase alias substrings. Order is the match priority.
VENUE_CATALOG: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "Emo's Austin": ("emo's", "emos", "emo's austin", "emos austin"),
    "ACL Live at The Moody Theater": (
        "acl live", "moody theater", "acl moody", "the moody theater", "moody theatre"
    ),
    "Scoot Inn": ("scoot inn", "the scoot inn"),
    "Stubb's Bar-B-Q": ("stubb's", "stubbs", "stubb's bar-b-q", "stubbs bar-b-q"),
    "Antone's Nightclub": ("antone's", "antones", "antone's nightclub"),
    "The Continental Club": ("continental club", "the continental club", "continental"),
    "Saxon Pub": ("saxon pub", "the saxon pub", "saxon"),
    "Cheer Up Charlies": ("cheer up charlies", "cheer up charlie's"),
    "The Far Out": ("the far out", "far out", "far out lounge"),
    "Mohawk": ("mohawk", "the mohawk"),
    "Red River Cultural District": ("red river", "red river district"),
    "Hole in the Wall": ("hole in the wall",),
    "C-Boys Heart & Soul": ("c-boys", "c boys", "c-boys heart & soul"),
    "Paramount Theatre": ("paramount", "paramount theatre", "paramount theater"),
    "The Long Center": ("long center", "the long center"),
    "Zilker Park": ("zilker", "zilker park"),
    "Austin City Limits Music Festival": ("acl", "austin city limits", "acl fest"),
})

FAVORITE_VENUES: Tuple[str, ...] = (
    "Emo's Austin",
    "ACL Live at The Moody Theater",
    "Scoot Inn",
)


def _title_case(name: str) -> str:
    return ' '.join(word[:1].upper() + word[1:].lower() for word in name.split(' '))


def canonicalize_venue(raw_name: Optional[str]) -> str:
    """
    Map a raw venue string to its canonical catalog name.

    Matching is substring containment in both directions, so truncated
    ("emo's") and padded ("Emo's Austin Downtown") names both resolve.
    The first catalog entry that matches wins.

    Args:
        raw_name: Venue text as scraped

    Returns:
        Canonical venue name, a title-cased fallback for unknown venues,
        or "Unknown Venue" for empty input
    """
    cleaned = normalize_whitespace(raw_name)
    if not cleaned:
        return UNKNOWN_VENUE

    lookup = cleaned.lower()
    for canonical_name, aliases in VENUE_CATALOG.items():
        if any(alias in lookup or lookup in alias for alias in aliases):
            return canonical_name

    logger.debug(f"Venue '{cleaned}' not in catalog, using title case")
    return _title_case(cleaned)


def is_favorite_venue(venue: str) -> bool:
    return venue in FAVORITE_VENUES
