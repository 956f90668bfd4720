"""Verse and book entities."""

from pydantic import BaseModel, ConfigDict, Field


class Verse(BaseModel):
    """A single verse as delivered by the verse source.

    Identity is the (book, chapter, verse) triple; verses never change
    once loaded.
    """

    model_config = ConfigDict(frozen=True)

    book: str = Field(min_length=1, description="Full book name, e.g. 창세기")
    chapter: int = Field(ge=1)
    verse: int = Field(ge=1)
    text: str = Field(description="Verse text as it should be read aloud")

    @property
    def chapter_key(self) -> str:
        """Key used in the completed chapter set."""
        return chapter_key(self.book, self.chapter)

    @property
    def citation(self) -> str:
        return f"{self.book} {self.chapter}:{self.verse}"

    @property
    def position(self) -> tuple[int, int]:
        return (self.chapter, self.verse)


class BookInfo(BaseModel):
    """Catalog entry for a book."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    chapter_count: int = Field(ge=0)
    has_text: bool = Field(default=False, description="Whether verse text is available for this book")


def chapter_key(book: str, chapter: int) -> str:
    return f"{book}:{chapter}"
