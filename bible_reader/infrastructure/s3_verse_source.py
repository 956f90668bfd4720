"""Verse source loading hierarchical bible JSON from S3."""

import json
import logging

import boto3

from .json_verse_source import JsonVerseSource

logger = logging.getLogger(__name__)


class S3VerseSource(JsonVerseSource):
    """JsonVerseSource whose data lives in an S3 object.

    The object is downloaded once at construction.
    """

    def __init__(self, bucket_name: str, object_key: str, region_name: str = "us-east-1"):
        """Initialize the S3 verse source.

        Args:
            bucket_name: The S3 bucket holding the bible JSON.
            object_key: The key of the JSON object.
            region_name: AWS region name (default: us-east-1).

        Raises:
            ValueError: If the object cannot be downloaded or parsed.
        """
        self.bucket_name = bucket_name
        self.object_key = object_key
        self.s3_client = boto3.client("s3", region_name=region_name)

        try:
            response = self.s3_client.get_object(Bucket=bucket_name, Key=object_key)
            data = json.loads(response["Body"].read())
        except Exception as e:
            logger.error(f"Failed to load s3://{bucket_name}/{object_key}: {e}", exc_info=True)
            raise ValueError(f"Bible data s3://{bucket_name}/{object_key} could not be loaded") from e

        super().__init__(data)
