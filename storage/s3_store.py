"""S3 storage for the event document."""
import json
import logging
from typing import Any, Dict

import boto3
from botocore.exceptions import ClientError

from storage.base import DocumentStore, empty_document

logger = logging.getLogger(__name__)


class S3DocumentStore(DocumentStore):
    """Store the event document as a single JSON object in S3."""

    def __init__(self, bucket: str, key: str = 'concerts.json'):
        """
        Initialize S3 client and object location.

        Args:
            bucket: Name of the S3 bucket
            key: Object key of the document
        """
        self.bucket = bucket
        self.key = key
        self.s3 = boto3.client('s3')
        logger.info(f"Initialized S3DocumentStore for s3://{bucket}/{key}")

    def read(self) -> Dict[str, Any]:
        """
        Fetch the document object.

        Returns:
            Stored document, or an empty document if the object does not exist

        Raises:
            ClientError: For S3 errors other than a missing object
        """
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=self.key)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                logger.info(f"No document at s3://{self.bucket}/{self.key}")
                return empty_document()
            logger.error(f"Error reading s3://{self.bucket}/{self.key}: {e}")
            raise

        return json.loads(response['Body'].read().decode('utf-8'))

    def replace(self, document: Dict[str, Any]) -> None:
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=json.dumps(document, indent=2).encode('utf-8'),
                ContentType='application/json'
            )
        except ClientError as e:
            logger.error(f"Error writing s3://{self.bucket}/{self.key}: {e}")
            raise

        logger.info(
            f"Saved {len(document.get('events', []))} events to "
            f"s3://{self.bucket}/{self.key}"
        )
