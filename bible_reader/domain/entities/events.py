"""Inbound event entities for reading sessions."""

from dataclasses import dataclass

from .transcript import TranscriptError


class InboundEvent:
    """Base class for inbound events."""

    pass


@dataclass
class StartSessionEvent(InboundEvent):
    """Event to start a session over a chapter range."""

    book: str
    start_chapter: int
    end_chapter: int


@dataclass
class StartListeningEvent(InboundEvent):
    """Event to switch the transcript source on."""

    pass


@dataclass
class TranscriptUpdateEvent(InboundEvent):
    """Event carrying the latest cumulative transcript."""

    text: str
    generation: int


@dataclass
class TranscriptErrorEvent(InboundEvent):
    """Event carrying a recognizer error."""

    error: TranscriptError


@dataclass
class RetryVerseEvent(InboundEvent):
    """Event to re-read the current verse."""

    pass


@dataclass
class StopSessionEvent(InboundEvent):
    """Event to stop the session and save what was read."""

    pass


@dataclass
class FinishSessionEvent(InboundEvent):
    """Event to leave a completed or errored session."""

    pass


@dataclass
class CloseEvent(InboundEvent):
    """Event to close the connection."""

    pass
