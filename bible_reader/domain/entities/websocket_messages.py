"""WebSocket message models for the bible reading coach."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


# ===== Client → Server Messages =====


class SessionStart(BaseModel):
    """Chapter range selection that starts a session."""

    type: Literal["session.start"] = "session.start"
    book: str = Field(min_length=1)
    start_chapter: int = Field(ge=1)
    end_chapter: int = Field(ge=1)


class ListeningStart(BaseModel):
    type: Literal["listening.start"] = "listening.start"


class TranscriptUpdate(BaseModel):
    """Cumulative transcript since the recognizer was last started or reset."""

    type: Literal["transcript"] = "transcript"
    text: str
    generation: int = Field(ge=0, description="Generation of the last recognition.command applied")


class RecognitionError(BaseModel):
    type: Literal["recognition.error"] = "recognition.error"
    error: str


class RecognitionEnded(BaseModel):
    """The recognizer stopped on its own (e.g. platform timeout)."""

    type: Literal["recognition.end"] = "recognition.end"
    generation: int = Field(ge=0)


class VerseRetry(BaseModel):
    type: Literal["verse.retry"] = "verse.retry"


class SessionStop(BaseModel):
    type: Literal["session.stop"] = "session.stop"


class SessionFinish(BaseModel):
    type: Literal["session.finish"] = "session.finish"


# Union type for all client messages, discriminated on "type"
ClientMessage = Annotated[
    Union[
        SessionStart,
        ListeningStart,
        TranscriptUpdate,
        RecognitionError,
        RecognitionEnded,
        VerseRetry,
        SessionStop,
        SessionFinish,
    ],
    Field(discriminator="type"),
]


# ===== Server → Client Messages =====


class ErrorCode(str, Enum):
    """Error codes for WebSocket errors."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_SELECTION = "INVALID_SELECTION"
    INVALID_STATE = "INVALID_STATE"
    TRANSCRIPT_ERROR = "TRANSCRIPT_ERROR"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

