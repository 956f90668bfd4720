"""Verse source protocol."""

from typing import Protocol, runtime_checkable

from ..entities.verse import BookInfo, Verse


@runtime_checkable
class VerseSource(Protocol):
    """Protocol for the authoritative verse data.

    Implementations answer independently of any user's session selection,
    which is what chapter completion is judged against.
    """

    def get_verses(self, book: str, start_chapter: int, end_chapter: int) -> list[Verse]:
        """Retrieve the ordered verses of a chapter range.

        Args:
            book: Full book name.
            start_chapter: First chapter, inclusive.
            end_chapter: Last chapter, inclusive.

        Returns:
            list[Verse]: Every verse present in the range, ordered by chapter
            then verse. Empty if the book or range has no data.
        """
        ...

    def get_chapter_verses(self, book: str, chapter: int) -> list[Verse]:
        """Retrieve every canonical verse of one chapter.

        Args:
            book: Full book name.
            chapter: Chapter number.

        Returns:
            list[Verse]: The chapter's verses, empty if unknown.
        """
        ...

    def resolve_book(self, name: str) -> str:
        """Map an abbreviated book name (e.g. "창") to the catalog name.

        Unknown names are returned unchanged.
        """
        ...

    def list_books(self) -> list[BookInfo]:
        """List the book catalog in canonical order.

        Returns:
            list[BookInfo]: All books, flagged with whether text is available.
        """
        ...
