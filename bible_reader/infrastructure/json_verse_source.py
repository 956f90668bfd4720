"""Verse source backed by hierarchical bible JSON."""

import json
import logging
import os
from typing import Any, Dict, Optional

from ..domain.entities.verse import BookInfo, Verse
from ..domain.interfaces.verse_source import VerseSource
from .bible_catalog import BOOK_CHAPTER_COUNTS, resolve_book_name

logger = logging.getLogger(__name__)

DEFAULT_BIBLE_DATA_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "bible_sample.json"
)


class JsonVerseSource(VerseSource):
    """VerseSource over data shaped ``{book: {chapter: {verse: text}}}``.

    Chapter and verse keys may be strings, as they are in JSON files.
    Verses are ordered numerically regardless of key order in the file.
    Books missing from the data still appear in the catalog, flagged as
    having no text.
    """

    def __init__(self, data: Dict[str, Any]):
        self._books: Dict[str, Dict[int, list[Verse]]] = {}
        for book, chapters in data.items():
            parsed: Dict[int, list[Verse]] = {}
            for chapter, verses in chapters.items():
                chapter_number = int(chapter)
                parsed[chapter_number] = sorted(
                    (
                        Verse(book=book, chapter=chapter_number, verse=int(number), text=text)
                        for number, text in verses.items()
                    ),
                    key=lambda v: v.verse,
                )
            self._books[book] = parsed
        logger.info(f"Loaded verse data for {len(self._books)} books")

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "JsonVerseSource":
        """Load verse data from a JSON file, the packaged sample by default.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = path or DEFAULT_BIBLE_DATA_PATH
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Reading bible data from {path}")
        return cls(data)

    def get_verses(self, book: str, start_chapter: int, end_chapter: int) -> list[Verse]:
        chapters = self._books.get(resolve_book_name(book))
        if not chapters:
            return []

        result = []
        for chapter in range(start_chapter, end_chapter + 1):
            result.extend(chapters.get(chapter, []))
        return result

    def get_chapter_verses(self, book: str, chapter: int) -> list[Verse]:
        chapters = self._books.get(resolve_book_name(book), {})
        return list(chapters.get(chapter, []))

    def resolve_book(self, name: str) -> str:
        return resolve_book_name(name)

    def list_books(self) -> list[BookInfo]:
        books = [
            BookInfo(name=name, chapter_count=count, has_text=name in self._books)
            for name, count in BOOK_CHAPTER_COUNTS.items()
        ]
        # Books present in the data but outside the canonical catalog
        for name, chapters in self._books.items():
            if name not in BOOK_CHAPTER_COUNTS:
                books.append(BookInfo(name=name, chapter_count=max(chapters, default=0), has_text=True))
        return books
