"""Unit tests for S3DocumentStore."""
import json

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from processor.models import Event
from storage.s3_store import S3DocumentStore

BUCKET = 'austin-live-music'


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials for moto."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def s3_bucket(aws_credentials):
    """Create a mock S3 bucket."""
    with mock_aws():
        s3 = boto3.client('s3', region_name='us-east-1')
        s3.create_bucket(Bucket=BUCKET)
        yield s3


@pytest.fixture
def sample_event():
    return Event(
        id='BlackPumasACLLiv0123',
        artist='Black Pumas',
        venue='ACL Live at The Moody Theater',
        date='2025-09-12',
        time='8:00pm',
        price='$45',
        source='Austin Showlists',
        is_favorite_venue=True
    )


class TestS3DocumentStore:
    """Test cases for S3DocumentStore."""

    def test_read_missing_object(self, s3_bucket):
        """Test that a missing object reads as an empty document."""
        store = S3DocumentStore(BUCKET)

        document = store.read()

        assert document == {'events': [], 'lastUpdated': None, 'totalEvents': 0}

    def test_replace_writes_json_object(self, s3_bucket, sample_event):
        """Test the document is stored as a JSON object."""
        store = S3DocumentStore(BUCKET, 'shows/concerts.json')
        document = {
            'events': [sample_event.to_dict()],
            'lastUpdated': '2025-09-10T08:00:00',
            'totalEvents': 1
        }

        store.replace(document)

        response = s3_bucket.get_object(Bucket=BUCKET, Key='shows/concerts.json')
        assert response['ContentType'] == 'application/json'
        assert json.loads(response['Body'].read()) == document

    def test_replace_then_read(self, s3_bucket, sample_event):
        """Test reading back a replaced document."""
        store = S3DocumentStore(BUCKET)
        store.replace({'events': [sample_event.to_dict()], 'lastUpdated': None, 'totalEvents': 1})

        assert store.read_events() == [sample_event]

    def test_replace_overwrites(self, s3_bucket, sample_event):
        """Test that replace discards the previous document."""
        store = S3DocumentStore(BUCKET)
        store.replace({'events': [sample_event.to_dict()], 'lastUpdated': None, 'totalEvents': 1})

        store.replace({'events': [], 'lastUpdated': 'now', 'totalEvents': 0})

        assert store.read() == {'events': [], 'lastUpdated': 'now', 'totalEvents': 0}

    def test_append(self, s3_bucket, sample_event):
        """Test appending merges by id."""
        store = S3DocumentStore(BUCKET)

        assert store.append([sample_event]) == 1
        assert store.append([sample_event]) == 0
        assert store.read()['totalEvents'] == 1

    def test_missing_bucket_raises(self, aws_credentials):
        """Test that errors other than a missing object propagate."""
        with mock_aws():
            store = S3DocumentStore('no-such-bucket')

            with pytest.raises(ClientError):
                store.read()

            with pytest.raises(ClientError):
                store.replace({'events': []})
