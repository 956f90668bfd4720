"""Tests verifying the infrastructure classes satisfy the domain protocols."""

from unittest.mock import AsyncMock, patch

from bible_reader.domain.interfaces import ProgressStore, TranscriptSource, VerseSource
from bible_reader.infrastructure import (
    DynamoDBProgressStore,
    JsonVerseSource,
    LocalProgressStore,
    RelayTranscriptSource,
)


def test_json_verse_source_implements_protocol():
    assert isinstance(JsonVerseSource({}), VerseSource)


def test_local_progress_store_implements_protocol():
    assert isinstance(LocalProgressStore(), ProgressStore)


@patch("bible_reader.infrastructure.dynamodb_progress_store.aioboto3")
def test_dynamodb_progress_store_implements_protocol(mock_aioboto3):
    assert isinstance(DynamoDBProgressStore(table_name="test-progress"), ProgressStore)


def test_relay_transcript_source_implements_protocol():
    source = RelayTranscriptSource(send_command=AsyncMock(), listener=AsyncMock())
    assert isinstance(source, TranscriptSource)
