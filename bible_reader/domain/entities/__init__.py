"""Domain entities for the bible reading coach."""

from .events import (
    CloseEvent,
    FinishSessionEvent,
    InboundEvent,
    RetryVerseEvent,
    StartListeningEvent,
    StartSessionEvent,
    StopSessionEvent,
    TranscriptErrorEvent,
    TranscriptUpdateEvent,
)
from .messages import (
    ErrorOutMessage,
    NoticeMessage,
    OutboundMessage,
    ProgressSavedMessage,
    RecognitionCommandMessage,
    SessionCompletedMessage,
    SessionReadyMessage,
    SessionStoppedMessage,
    StateChangedMessage,
    VerseMatchedMessage,
)
from .reading_session import ReadingState, SessionOutcome, SessionProgress, SessionState
from .transcript import TranscriptError, TranscriptErrorCode
from .user_progress import SessionRecord, UserProgress
from .verse import BookInfo, Verse, chapter_key
from .websocket_messages import (
    ClientMessage,
    ErrorCode,
    ListeningStart,
    RecognitionEnded,
    RecognitionError,
    SessionFinish,
    SessionStart,
    SessionStop,
    TranscriptUpdate,
    VerseRetry,
)

__all__ = [
    # Verse entities
    "Verse",
    "BookInfo",
    "chapter_key",
    # Progress entities
    "UserProgress",
    "SessionRecord",
    # Session entities
    "ReadingState",
    "SessionState",
    "SessionProgress",
    "SessionOutcome",
    # Transcript entities
    "TranscriptError",
    "TranscriptErrorCode",
    # Event entities
    "InboundEvent",
    "StartSessionEvent",
    "StartListeningEvent",
    "TranscriptUpdateEvent",
    "TranscriptErrorEvent",
    "RetryVerseEvent",
    "StopSessionEvent",
    "FinishSessionEvent",
    "CloseEvent",
    # Message entities
    "OutboundMessage",
    "SessionReadyMessage",
    "StateChangedMessage",
    "RecognitionCommandMessage",
    "VerseMatchedMessage",
    "SessionCompletedMessage",
    "SessionStoppedMessage",
    "ProgressSavedMessage",
    "NoticeMessage",
    "ErrorOutMessage",
    # WebSocket message entities
    "ClientMessage",
    "SessionStart",
    "ListeningStart",
    "TranscriptUpdate",
    "RecognitionError",
    "RecognitionEnded",
    "VerseRetry",
    "SessionStop",
    "SessionFinish",
    "ErrorCode",
]
