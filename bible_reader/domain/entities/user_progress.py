"""Durable per-user reading progress."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SessionRecord(BaseModel):
    """History entry for one reading session in which verses were read."""

    date: datetime
    book: str = Field(min_length=1)
    start_chapter: int = Field(ge=1)
    start_verse: int = Field(ge=1)
    end_chapter: int = Field(ge=1)
    end_verse: int = Field(ge=1)
    verses_read: int = Field(ge=1, description="Verses actually read, skipped verses excluded")


class UserProgress(BaseModel):
    """User progress entity: bookmark, completed chapters and session history.

    The default instance is the zero value handed out for users who have
    never saved any progress.
    """

    last_read_book: str = ""
    last_read_chapter: int = Field(default=0, ge=0)
    last_read_verse: int = Field(default=0, ge=0)
    completed_chapters: set[str] = Field(
        default_factory=set,
        description="Chapter keys in the form 'book:chapter'",
    )
    history: list[SessionRecord] = Field(default_factory=list)
    last_progress_update_date: Optional[datetime] = None

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "last_read_book": "창세기",
                "last_read_chapter": 1,
                "last_read_verse": 31,
                "completed_chapters": ["창세기:1"],
                "history": [
                    {
                        "date": "2026-10-18T06:30:00Z",
                        "book": "창세기",
                        "start_chapter": 1,
                        "start_verse": 1,
                        "end_chapter": 1,
                        "end_verse": 31,
                        "verses_read": 31,
                    }
                ],
            }
        }

    @property
    def has_bookmark(self) -> bool:
        return bool(self.last_read_book) and self.last_read_chapter > 0 and self.last_read_verse > 0

    def is_chapter_completed(self, book: str, chapter: int) -> bool:
        return f"{book}:{chapter}" in self.completed_chapters

    def merged_with(self, other: "UserProgress") -> "UserProgress":
        """Return ``other`` with this progress' completed chapters unioned in.

        Bookmark and history come from ``other``; completed chapters only
        ever grow.
        """
        return other.model_copy(
            update={"completed_chapters": self.completed_chapters | other.completed_chapters}
        )
