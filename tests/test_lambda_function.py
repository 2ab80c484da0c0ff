"""Integration tests for Lambda handler."""
import json
import logging
import os
from datetime import date, timedelta
from unittest.mock import Mock, patch

import pytest
import responses

from lambda_function import (
    JsonFormatter,
    build_aggregator,
    build_store,
    lambda_handler,
    setup_logging,
)
from processor.models import AggregationReport, AggregationResult, Event, SourceResult
from scraper.sources import SOURCES
from storage.json_store import JsonFileStore
from storage.s3_store import S3DocumentStore


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / 'concerts.json'


@pytest.fixture
def mock_env(data_file):
    """Set up environment variables for testing."""
    env_vars = {
        'LOG_LEVEL': 'INFO',
        'STORE_BACKEND': 'file',
        'DATA_FILE': str(data_file),
        'TIMEOUT_SECONDS': '5',
        'REQUEST_DELAY_SECONDS': '0',
        'UPCOMING_DAYS': '14'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    context = Mock()
    context.function_name = 'test-function'
    context.memory_limit_in_mb = 512
    context.invoked_function_arn = 'arn:aws:lambda:us-east-1:123456789012:function:test-function'
    context.aws_request_id = 'test-request-id'
    return context


def make_event(artist, venue, event_date, source='Do512', favorite=False):
    return Event(
        id=f"{artist}{venue}".replace(' ', '')[:16] + '0000',
        artist=artist,
        venue=venue,
        date=event_date,
        time='8:00pm',
        price='$25',
        source=source,
        is_favorite_venue=favorite
    )


@pytest.fixture
def aggregation_result():
    """Create a finished aggregation with one failed source."""
    report = AggregationReport()
    report.record(SourceResult(
        'Do512', 'general', 0,
        events=[make_event('Black Pumas', 'ACL Live at The Moody Theater', '2025-09-12')]
    ))
    report.record(SourceResult('Scoot Inn', 'venue', 1, error='503 Server Error'))
    events = [
        make_event('Black Pumas', 'ACL Live at The Moody Theater', '2025-09-12', favorite=True),
        make_event('Hard Proof', 'Mohawk', '2025-09-13'),
    ]
    report.total_events = 2
    report.venue_stats = {'ACL Live at The Moody Theater': 1, 'Mohawk': 1}
    report.favorite_venue_events = 1
    report.favorite_venues = ['ACL Live at The Moody Theater']
    return AggregationResult(events=events, report=report)


class TestScrapeAction:
    """Test cases for the scrape action."""

    @patch('lambda_function.build_aggregator')
    def test_successful_scrape(
        self,
        mock_build_aggregator,
        mock_env,
        mock_context,
        aggregation_result,
        data_file
    ):
        """Test successful end-to-end scrape and save."""
        mock_aggregator = Mock()
        mock_aggregator.run.return_value = aggregation_result
        mock_build_aggregator.return_value = mock_aggregator

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['message'] == 'Scraping completed successfully'
        assert body['eventsFound'] == 2
        assert body['results']['failed'] == [
            {'source': 'Scoot Inn', 'error': '503 Server Error', 'type': 'venue'}
        ]
        assert body['summary']['totalSources'] == 2
        assert body['summary']['successfulSources'] == 1
        assert body['summary']['failedSources'] == 1
        assert body['summary']['eventsPerSource'] == ['Do512: 1']
        assert body['summary']['favoriteVenueEvents'] == 1
        assert body['summary']['totalVenues'] == 2
        assert 'duration_seconds' in body['summary']

        stored = json.loads(data_file.read_text())
        assert stored['totalEvents'] == 2
        assert [item['artist'] for item in stored['events']] == ['Black Pumas', 'Hard Proof']
        assert stored['events'][0]['isFavoriteVenue'] is True
        assert stored['lastUpdated']

        mock_build_aggregator.assert_called_once_with(5, 0.0, 1)

    @patch('lambda_function.build_aggregator')
    def test_aggregation_failure(self, mock_build_aggregator, mock_env, mock_context, data_file):
        """Test error handling when aggregation itself fails."""
        mock_aggregator = Mock()
        mock_aggregator.run.side_effect = Exception('Thread pool broke')
        mock_build_aggregator.return_value = mock_aggregator

        response = lambda_handler({'action': 'scrape'}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['message'] == 'Failed to aggregate events'
        assert 'Thread pool broke' in body['error']
        assert body['error_type'] == 'Exception'
        assert 'duration_seconds' in body
        assert not data_file.exists()

    @patch('lambda_function.build_store')
    @patch('lambda_function.build_aggregator')
    def test_save_failure(
        self,
        mock_build_aggregator,
        mock_build_store,
        mock_env,
        mock_context,
        aggregation_result
    ):
        """Test error handling when the store cannot be written."""
        mock_aggregator = Mock()
        mock_aggregator.run.return_value = aggregation_result
        mock_build_aggregator.return_value = mock_aggregator

        mock_store = Mock()
        mock_store.replace.side_effect = OSError('Read-only file system')
        mock_build_store.return_value = mock_store

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['message'] == 'Failed to save events'
        assert 'Read-only file system' in body['error']
        assert body['error_type'] == 'OSError'
        assert body['note'] == 'Previous events remain in storage'

    @patch('lambda_function.build_aggregator')
    @patch('lambda_function.setup_logging')
    def test_logging_output(
        self,
        mock_setup_logging,
        mock_build_aggregator,
        mock_env,
        mock_context,
        aggregation_result,
        caplog
    ):
        """Test that logging output is generated correctly."""
        mock_aggregator = Mock()
        mock_aggregator.run.return_value = aggregation_result
        mock_build_aggregator.return_value = mock_aggregator

        with caplog.at_level(logging.INFO, logger='lambda_function'):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        log_messages = [record.message for record in caplog.records]
        assert any('Lambda execution started' in msg for msg in log_messages)
        assert any('Aggregating events from sources' in msg for msg in log_messages)
        assert any('Saving events to storage' in msg for msg in log_messages)
        assert any('Scrape completed successfully' in msg for msg in log_messages)

    def test_invalid_store_backend(self, mock_env, mock_context):
        """Test that a misconfigured backend fails the invocation."""
        with patch.dict(os.environ, {'STORE_BACKEND': 'ftp'}):
            response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['message'] == 'Execution failed'
        assert body['error_type'] == 'ValueError'


class TestListAction:
    """Test cases for the list action."""

    def test_lists_upcoming_events(self, mock_env, mock_context, data_file):
        """Test that only events inside the window are returned, by date."""
        today = date.today()
        events = [
            make_event('Later', 'Mohawk', (today + timedelta(days=5)).isoformat()),
            make_event('Past', 'Mohawk', (today - timedelta(days=1)).isoformat()),
            make_event('Soon', 'Scoot Inn', (today + timedelta(days=1)).isoformat()),
            make_event('Far', 'Mohawk', (today + timedelta(days=30)).isoformat()),
        ]
        data_file.write_text(json.dumps({
            'events': [event.to_dict() for event in events],
            'lastUpdated': '2025-09-10T08:00:00',
            'totalEvents': 4
        }))

        response = lambda_handler({'action': 'list'}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert [item['artist'] for item in body['events']] == ['Soon', 'Later']
        assert body['totalEvents'] == 2
        assert body['lastUpdated'] == '2025-09-10T08:00:00'

    def test_no_stored_document(self, mock_env, mock_context):
        """Test listing before any scrape has run."""
        response = lambda_handler({'action': 'list'}, mock_context)

        body = json.loads(response['body'])
        assert response['statusCode'] == 200
        assert body['events'] == []
        assert body['totalEvents'] == 0

    def test_unreadable_document(self, mock_env, mock_context, data_file):
        """Test that a corrupt document yields an empty list with a message."""
        data_file.write_text('{not json')

        response = lambda_handler({'action': 'list'}, mock_context)

        body = json.loads(response['body'])
        assert response['statusCode'] == 200
        assert body['events'] == []
        assert body['error'] == 'No event data found. Try scraping first.'


class TestInspectAction:
    """Test cases for the inspect action."""

    def test_missing_url(self, mock_env, mock_context):
        """Test that inspect requires a url."""
        response = lambda_handler({'action': 'inspect'}, mock_context)

        assert response['statusCode'] == 400

    @responses.activate
    def test_inspect_page(self, mock_env, mock_context):
        """Test the structure report for a fetched page."""
        url = 'https://do512.com/events/live-music/'
        responses.add(
            responses.GET, url,
            body='<html><head><title>Do512</title></head>'
                 '<body><div class="event-card">Spoon</div></body></html>'
        )

        response = lambda_handler({'action': 'inspect', 'url': url}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['url'] == url
        assert body['debug']['title'] == 'Do512'
        assert body['debug']['classes']['event'] == ['event-card']

    @responses.activate
    def test_inspect_fetch_failure(self, mock_env, mock_context):
        """Test that fetch failures are reported as a bad gateway."""
        url = 'https://do512.com/events/live-music/'
        responses.add(responses.GET, url, status=403)

        response = lambda_handler({'action': 'inspect', 'url': url}, mock_context)

        assert response['statusCode'] == 502
        body = json.loads(response['body'])
        assert '403' in body['error']


class TestHandlerDispatch:
    """Test cases for action dispatch and wiring."""

    def test_unknown_action(self, mock_env, mock_context):
        """Test that unknown actions are rejected."""
        response = lambda_handler({'action': 'delete'}, mock_context)

        assert response['statusCode'] == 400
        assert 'delete' in json.loads(response['body'])['message']

    def test_build_store_file_backend(self, mock_env, data_file):
        """Test the default file backend."""
        store = build_store()

        assert isinstance(store, JsonFileStore)
        assert str(store.path) == str(data_file)

    def test_build_store_s3_backend(self, mock_env):
        """Test the s3 backend configuration."""
        env = {
            'STORE_BACKEND': 's3',
            'BUCKET_NAME': 'austin-shows',
            'AWS_DEFAULT_REGION': 'us-east-1'
        }
        with patch.dict(os.environ, env):
            store = build_store()

        assert isinstance(store, S3DocumentStore)
        assert store.bucket == 'austin-shows'
        assert store.key == 'concerts.json'

    def test_build_store_s3_requires_bucket(self, mock_env):
        """Test that the s3 backend needs a bucket."""
        with patch.dict(os.environ, {'STORE_BACKEND': 's3'}):
            os.environ.pop('BUCKET_NAME', None)
            with pytest.raises(ValueError):
                build_store()

    def test_build_aggregator_sequential(self):
        """Test sequential wiring keeps the inter-source delay."""
        aggregator = build_aggregator(15, 3.0, 1)

        assert len(aggregator.adapters) == len(SOURCES)
        assert aggregator.delay_seconds == 3.0
        assert aggregator.max_workers == 1
        assert aggregator.adapters[0].fetcher.throttle is None

    def test_build_aggregator_parallel(self):
        """Test parallel wiring converts the delay to per-host spacing."""
        aggregator = build_aggregator(15, 3.0, 4)

        assert aggregator.delay_seconds == 0
        assert aggregator.max_workers == 4
        assert aggregator.adapters[0].fetcher.throttle.min_interval == 3.0


class TestSetupLogging:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self):
        """Test logging setup with default INFO level."""
        setup_logging()
        logger = logging.getLogger()
        assert logger.level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test logging setup with DEBUG level."""
        setup_logging('DEBUG')
        logger = logging.getLogger()
        assert logger.level == logging.DEBUG

    def test_setup_logging_error_level(self):
        """Test logging setup with ERROR level."""
        setup_logging('ERROR')
        logger = logging.getLogger()
        assert logger.level == logging.ERROR

    def test_json_formatter(self):
        """Test that log records are rendered as JSON."""
        record = logging.LogRecord(
            'scraper.fetcher', logging.WARNING, __file__, 1,
            'Fetching %s failed', ('https://do512.com',), None
        )

        data = json.loads(JsonFormatter().format(record))

        assert data['level'] == 'WARNING'
        assert data['logger'] == 'scraper.fetcher'
        assert data['message'] == 'Fetching https://do512.com failed'
