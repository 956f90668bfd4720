"""Infrastructure layer components."""

from .dynamodb_progress_store import DynamoDBProgressStore
from .json_verse_source import JsonVerseSource
from .local_progress_store import LocalProgressStore
from .relay_transcript_source import RelayTranscriptSource
from .s3_verse_source import S3VerseSource

__all__ = [
    "DynamoDBProgressStore",
    "JsonVerseSource",
    "LocalProgressStore",
    "RelayTranscriptSource",
    "S3VerseSource",
]
