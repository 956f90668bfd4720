"""Domain interfaces for the bible reading coach."""

from .progress_store import ProgressStore
from .transcript_source import TranscriptListener, TranscriptSource
from .verse_source import VerseSource

__all__ = ["ProgressStore", "TranscriptListener", "TranscriptSource", "VerseSource"]
