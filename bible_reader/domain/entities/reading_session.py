"""Reading session entities."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .verse import Verse


class ReadingState(str, Enum):
    """Reading session state."""

    IDLE = "idle"
    READING = "reading"
    LISTENING = "listening"
    SESSION_COMPLETED = "session_completed"
    ERROR = "error"


class SessionProgress(BaseModel):
    """Display snapshot of how far a session has come."""

    current_book: str
    current_chapter: int
    current_verse: int
    total_verses: int
    completed_verses: int
    total_chapters: int
    completed_chapters: int


class SessionState(BaseModel):
    """State of one reading session.

    ``completed_count`` always equals ``current_index``: verses are counted
    from the start of ``target_verses``, so verses skipped on resume are
    included.
    """

    id: UUID = Field(default_factory=uuid.uuid4)
    status: ReadingState = ReadingState.IDLE
    target_verses: list[Verse] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    initial_skip_count: int = Field(default=0, ge=0)
    transcript_buffer: str = ""
    matched_text: str = ""
    certification_message: str = ""
    error_message: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def _check_indices(self) -> "SessionState":
        if self.current_index > len(self.target_verses):
            raise ValueError(
                f"current_index {self.current_index} beyond {len(self.target_verses)} target verses"
            )
        if self.initial_skip_count > self.current_index:
            raise ValueError("initial_skip_count cannot exceed completed_count")
        return self

    @property
    def completed_count(self) -> int:
        return self.current_index

    @property
    def total_verses(self) -> int:
        return len(self.target_verses)

    @property
    def current_verse(self) -> Optional[Verse]:
        """The target verse, or None once every verse is covered."""
        if self.current_index < len(self.target_verses):
            return self.target_verses[self.current_index]
        return None

    @property
    def verses_actually_read(self) -> int:
        return self.completed_count - self.initial_skip_count

    @property
    def book(self) -> str:
        return self.target_verses[0].book if self.target_verses else ""

    def progress(self) -> SessionProgress:
        """Build the progress snapshot shown while reading."""
        anchor = self.current_verse
        if anchor is None and self.target_verses:
            anchor = self.target_verses[-1]

        chapters: dict[str, int] = {}
        for verse in self.target_verses:
            chapters[verse.chapter_key] = chapters.get(verse.chapter_key, 0) + 1
        covered: dict[str, int] = {}
        for verse in self.target_verses[: self.completed_count]:
            covered[verse.chapter_key] = covered.get(verse.chapter_key, 0) + 1
        completed_chapters = sum(1 for key, total in chapters.items() if covered.get(key, 0) == total)

        return SessionProgress(
            current_book=anchor.book if anchor else "",
            current_chapter=anchor.chapter if anchor else 0,
            current_verse=anchor.verse if anchor else 0,
            total_verses=self.total_verses,
            completed_verses=self.completed_count,
            total_chapters=len(chapters),
            completed_chapters=completed_chapters,
        )


class SessionOutcome(BaseModel):
    """What a finished or stopped session hands to progress reconciliation."""

    model_config = ConfigDict(frozen=True)

    reason: Literal["completed", "stopped"]
    target_verses: list[Verse]
    initial_skip_count: int = Field(ge=0)
    completed_count: int = Field(ge=0)

    @property
    def verses_read(self) -> int:
        return self.completed_count - self.initial_skip_count

    @property
    def covered_verses(self) -> list[Verse]:
        """Verses read or skipped, from the start of the selection."""
        return self.target_verses[: self.completed_count]

    @property
    def read_verses(self) -> list[Verse]:
        return self.target_verses[self.initial_skip_count : self.completed_count]

    @property
    def first_read_verse(self) -> Optional[Verse]:
        read = self.read_verses
        return read[0] if read else None

    @property
    def last_covered_verse(self) -> Optional[Verse]:
        covered = self.covered_verses
        return covered[-1] if covered else None
