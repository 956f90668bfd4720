"""Outbound message entities."""

from dataclasses import dataclass, field
from typing import Literal, Optional

from .reading_session import SessionProgress
from .verse import Verse
from .websocket_messages import ErrorCode


class OutboundMessage:
    """Base class for outbound messages."""

    pass


@dataclass
class SessionReadyMessage(OutboundMessage):
    """Message indicating the target verses are loaded."""

    session_id: str
    book: str
    total_verses: int
    initial_skip_count: int
    current_verse: Optional[Verse]
    progress: SessionProgress


@dataclass
class StateChangedMessage(OutboundMessage):
    """Message announcing a reading state transition."""

    state: str


@dataclass
class RecognitionCommandMessage(OutboundMessage):
    """Instruction for the client-side recognizer."""

    command: Literal["start", "stop", "reset"]
    generation: int = 0
    language: str = "ko-KR"


@dataclass
class VerseMatchedMessage(OutboundMessage):
    """Message sent when a verse has been read."""

    verse: Verse
    similarity: float
    progress: SessionProgress
    next_verse: Optional[Verse] = None


@dataclass
class SessionCompletedMessage(OutboundMessage):
    """Message sent when the last target verse has been read."""

    certification_message: str
    verses_read: int


@dataclass
class SessionStoppedMessage(OutboundMessage):
    """Message sent when the user stops a session."""

    certification_message: str
    verses_read: int


@dataclass
class ProgressSavedMessage(OutboundMessage):
    """Result of persisting reconciled progress."""

    saved: bool
    completed_chapters: list[str] = field(default_factory=list)
    newly_completed_chapters: list[str] = field(default_factory=list)


@dataclass
class NoticeMessage(OutboundMessage):
    """Message containing a notice."""

    message: str


@dataclass
class ErrorOutMessage(OutboundMessage):
    """Message containing an error."""

    code: ErrorCode
    message: str
