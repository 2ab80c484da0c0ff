"""Source adapter: fetch one source, extract listings, convert to events."""
import logging

from processor.event_processor import EventProcessor
from processor.models import SourceResult
from scraper.extractors import extract_listings
from scraper.fetcher import FetchError, PageFetcher
from scraper.sources import SourceConfig

logger = logging.getLogger(__name__)


class SourceAdapter:
    """Pairs a source descriptor with the fetcher and the extraction strategy."""

    def __init__(
        self,
        config: SourceConfig,
        fetcher: PageFetcher,
        processor: EventProcessor
    ):
        self.config = config
        self.fetcher = fetcher
        self.processor = processor

    @property
    def name(self) -> str:
        return self.config.name

    def run(self, rank: int = 0) -> SourceResult:
        """
        Fetch and extract this source.

        Retrieval and extraction failures are captured in the result instead
        of being raised, so one broken source never aborts a run.

        Args:
            rank: Position of the source in the catalog

        Returns:
            SourceResult with events on success or the error message on failure
        """
        result = SourceResult(
            source=self.config.name,
            source_type=self.config.source_type,
            rank=rank
        )

        try:
            html = self.fetcher.fetch(self.config.url)
            listings = extract_listings(html, self.config)
            result.events = self.processor.process_listings(listings)
        except FetchError as e:
            logger.warning(f"Failed to fetch {self.config.name}: {e.reason}")
            result.error = e.reason
        except Exception as e:
            logger.warning(
                f"Failed to scrape {self.config.name}: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            result.error = str(e) or type(e).__name__
        else:
            logger.info(f"{self.config.name}: {len(result.events)} events found")

        return result
