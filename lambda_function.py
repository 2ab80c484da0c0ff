"""AWS Lambda handler for the Austin live music schedule aggregator."""
import json
import logging
import os
import time
from typing import Any, Dict

from processor.aggregator import ScheduleAggregator
from processor.event_processor import EventProcessor
from scraper.adapter import SourceAdapter
from scraper.fetcher import FetchError, HostThrottle, PageFetcher
from scraper.inspector import inspect_page
from scraper.sources import SOURCES
from storage.base import DocumentStore, events_from_document
from storage.json_store import JsonFileStore
from storage.s3_store import S3DocumentStore

logger = logging.getLogger(__name__)


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def build_store() -> DocumentStore:
    """
    Create the document store selected by STORE_BACKEND.

    Raises:
        ValueError: If the backend is unknown or BUCKET_NAME is missing for s3
    """
    backend = os.environ.get('STORE_BACKEND', 'file').lower()
    if backend == 'file':
        return JsonFileStore(os.environ.get('DATA_FILE', '/tmp/concerts.json'))
    if backend == 's3':
        bucket = os.environ.get('BUCKET_NAME')
        if not bucket:
            raise ValueError('BUCKET_NAME is required for the s3 store backend')
        return S3DocumentStore(bucket, os.environ.get('OBJECT_KEY', 'concerts.json'))
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")


def build_aggregator(
    timeout_seconds: int,
    delay_seconds: float,
    max_workers: int
) -> ScheduleAggregator:
    """
    Wire fetcher, adapters and processor for the configured sources.

    In parallel mode the inter-source delay becomes a per-host spacing.
    """
    throttle = HostThrottle(delay_seconds) if max_workers > 1 else None
    fetcher = PageFetcher(timeout=timeout_seconds, throttle=throttle)
    processor = EventProcessor()
    adapters = [SourceAdapter(config, fetcher, processor) for config in SOURCES]
    return ScheduleAggregator(
        adapters,
        processor=processor,
        delay_seconds=0 if max_workers > 1 else delay_seconds,
        max_workers=max_workers
    )


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': json.dumps(body)}


def _error_response(message: str, error: Exception, start_time: float, **extra) -> Dict[str, Any]:
    body = {
        'message': message,
        'error': str(error),
        'error_type': type(error).__name__,
        'duration_seconds': round(time.time() - start_time, 2)
    }
    body.update(extra)
    return _response(500, body)


def handle_scrape(start_time: float) -> Dict[str, Any]:
    """Run a full aggregation and replace the stored document."""
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '15'))
    delay_seconds = float(os.environ.get('REQUEST_DELAY_SECONDS', '3'))
    max_workers = int(os.environ.get('MAX_WORKERS', '1'))

    aggregator = build_aggregator(timeout_seconds, delay_seconds, max_workers)
    store = build_store()

    try:
        logger.info("Aggregating events from sources")
        result = aggregator.run()
        logger.info(f"Aggregated {len(result.events)} unique events")
    except Exception as e:
        logger.error(
            f"Aggregation failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Failed to aggregate events', e, start_time)

    try:
        logger.info("Saving events to storage")
        store.replace(result.to_document())
    except Exception as e:
        # Leave the previous document in place
        logger.error(
            f"Error saving events: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response(
            'Failed to save events', e, start_time,
            note='Previous events remain in storage'
        )

    report = result.report
    duration = time.time() - start_time
    logger.info(
        "Scrape completed successfully",
        extra={
            'duration_seconds': round(duration, 2),
            'total_events': report.total_events,
            'failed_sources': len(report.failed)
        }
    )

    return _response(200, {
        'message': 'Scraping completed successfully',
        'eventsFound': report.total_events,
        'results': report.to_dict(),
        'summary': {
            'totalSources': len(report.successful) + len(report.failed),
            'successfulSources': len(report.successful),
            'failedSources': len(report.failed),
            'eventsPerSource': [
                f"{entry['source']}: {entry['count']}" for entry in report.successful
            ],
            'favoriteVenueEvents': report.favorite_venue_events,
            'totalVenues': len(report.venue_stats),
            'duration_seconds': round(duration, 2)
        }
    })


def handle_list() -> Dict[str, Any]:
    """Return stored events inside the upcoming window."""
    days = int(os.environ.get('UPCOMING_DAYS', '14'))

    try:
        store = build_store()
        document = store.read()
        events = events_from_document(document)
    except Exception as e:
        logger.error(f"Error reading events: {str(e)}", exc_info=True)
        return _response(200, {
            'events': [],
            'lastUpdated': None,
            'totalEvents': 0,
            'error': 'No event data found. Try scraping first.'
        })

    upcoming = EventProcessor().filter_upcoming(events, days=days)
    return _response(200, {
        'events': [event.to_dict() for event in upcoming],
        'lastUpdated': document.get('lastUpdated'),
        'totalEvents': len(upcoming)
    })


def handle_inspect(event: Dict[str, Any]) -> Dict[str, Any]:
    """Fetch one page and describe its structure."""
    url = event.get('url')
    if not url:
        return _response(400, {'message': 'url is required for inspect'})

    fetcher = PageFetcher(timeout=int(os.environ.get('TIMEOUT_SECONDS', '15')))
    try:
        html = fetcher.fetch(url)
    except FetchError as e:
        logger.warning(f"Inspect fetch failed for {url}: {e.reason}")
        return _response(502, {'message': 'Failed to fetch page', 'url': url, 'error': e.reason})

    return _response(200, {'url': url, 'debug': inspect_page(html, url)})


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: Invocation payload; ``action`` is "scrape" (default),
            "list" or "inspect"
        context: Lambda context object

    Returns:
        Response dict with statusCode and JSON body
    """
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))

    start_time = time.time()
    action = (event or {}).get('action', 'scrape')
    logger.info("Lambda execution started", extra={'action': action})

    try:
        if action == 'scrape':
            return handle_scrape(start_time)
        if action == 'list':
            return handle_list()
        if action == 'inspect':
            return handle_inspect(event)
        return _response(400, {'message': f"Unknown action: {action}"})

    except Exception as e:
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(time.time() - start_time, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _error_response('Execution failed', e, start_time)


if __name__ == '__main__':
    print(json.dumps(lambda_handler({'action': 'scrape'}, None), indent=2))
