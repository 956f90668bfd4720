"""Where to pick up reading, and how far each book has come."""

from dataclasses import dataclass

from ..entities.user_progress import UserProgress
from ..entities.verse import BookInfo, chapter_key
from ..interfaces.verse_source import VerseSource

DEFAULT_BOOK = "창세기"


@dataclass(frozen=True)
class ReadingSelection:
    book: str
    chapter: int


@dataclass(frozen=True)
class BookCompletion:
    book: str
    completed_chapters: int
    chapter_count: int

    @property
    def percentage(self) -> float:
        if self.chapter_count == 0:
            return 0.0
        return self.completed_chapters / self.chapter_count * 100


def _first_selection(books: list[BookInfo]) -> ReadingSelection:
    for info in books:
        if info.chapter_count > 0:
            return ReadingSelection(info.name, 1)
    return ReadingSelection(DEFAULT_BOOK, 1)


def suggest_resume_selection(
    progress: UserProgress,
    books: list[BookInfo],
    verse_source: VerseSource,
) -> ReadingSelection:
    """Suggest the book and chapter to read next.

    Moves past the bookmarked chapter only once its last canonical verse
    has been read, and past the book only from its last chapter.
    """
    if not progress.has_bookmark:
        return _first_selection(books)

    names = [b.name for b in books]
    if progress.last_read_book not in names:
        return _first_selection(books)

    index = names.index(progress.last_read_book)
    info = books[index]
    if info.chapter_count == 0:
        return _first_selection(books)

    chapter = min(progress.last_read_chapter, info.chapter_count)
    canonical = verse_source.get_chapter_verses(info.name, chapter)
    chapter_finished = bool(canonical) and progress.last_read_verse >= canonical[-1].verse
    if not chapter_finished:
        return ReadingSelection(info.name, chapter)

    if chapter < info.chapter_count:
        return ReadingSelection(info.name, chapter + 1)

    for candidate in books[index + 1 :]:
        if candidate.chapter_count > 0:
            return ReadingSelection(candidate.name, 1)
    return ReadingSelection(info.name, info.chapter_count)


def summarize_book_completion(progress: UserProgress, books: list[BookInfo]) -> list[BookCompletion]:
    summary = []
    for info in books:
        done = sum(
            1
            for chapter in range(1, info.chapter_count + 1)
            if chapter_key(info.name, chapter) in progress.completed_chapters
        )
        summary.append(BookCompletion(info.name, done, info.chapter_count))
    return summary
