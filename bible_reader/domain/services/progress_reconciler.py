"""Reconciliation of a finished session with the user's durable progress."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..entities.reading_session import SessionOutcome
from ..entities.user_progress import SessionRecord, UserProgress
from ..entities.verse import Verse, chapter_key
from ..interfaces.progress_store import ProgressStore
from ..interfaces.verse_source import VerseSource

logger = logging.getLogger(__name__)


def completed_chapters_in(covered: list[Verse], verse_source: VerseSource) -> set[str]:
    """Chapters whose every canonical verse is among ``covered``.

    A chapter the session only partially selected is never complete, even
    if every selected verse was read.
    """
    covered_by_chapter: dict[tuple[str, int], set[int]] = {}
    for verse in covered:
        covered_by_chapter.setdefault((verse.book, verse.chapter), set()).add(verse.verse)

    completed = set()
    for (book, chapter), verse_numbers in covered_by_chapter.items():
        canonical = verse_source.get_chapter_verses(book, chapter)
        if canonical and all(v.verse in verse_numbers for v in canonical):
            completed.add(chapter_key(book, chapter))
    return completed


def reconcile_progress(
    progress: UserProgress,
    outcome: SessionOutcome,
    verse_source: VerseSource,
    now: Optional[datetime] = None,
) -> UserProgress:
    """Fold a session outcome into the user's progress.

    Completed chapters are merged, the bookmark moves to the last covered
    verse and a history record is appended when verses were actually read.
    The input progress is left untouched.
    """
    last = outcome.last_covered_verse
    if last is None or outcome.verses_read <= 0:
        return progress

    now = now or datetime.now(timezone.utc)
    completed = progress.completed_chapters | completed_chapters_in(outcome.covered_verses, verse_source)

    history = list(progress.history)
    first = outcome.first_read_verse
    history.append(
        SessionRecord(
            date=now,
            book=first.book,
            start_chapter=first.chapter,
            start_verse=first.verse,
            end_chapter=last.chapter,
            end_verse=last.verse,
            verses_read=outcome.verses_read,
        )
    )

    return progress.model_copy(
        update={
            "last_read_book": last.book,
            "last_read_chapter": last.chapter,
            "last_read_verse": last.verse,
            "completed_chapters": completed,
            "history": history,
            "last_progress_update_date": now,
        }
    )


@dataclass
class ReconciliationResult:
    progress: UserProgress
    saved: bool
    newly_completed_chapters: list[str] = field(default_factory=list)


class ProgressReconciliationService:
    """Reconciles session outcomes and persists them through the progress store."""

    def __init__(self, verse_source: VerseSource, progress_store: ProgressStore):
        self.verse_source = verse_source
        self.progress_store = progress_store

    async def reconcile_and_save(
        self,
        user_id: str,
        progress: UserProgress,
        outcome: SessionOutcome,
    ) -> ReconciliationResult:
        """Reconcile and persist.

        Returns the updated progress when the save succeeds and the progress
        it was given when it fails; failures are logged, never raised.
        """
        updated = reconcile_progress(progress, outcome, self.verse_source)
        if updated is progress:
            logger.info(f"Nothing read by {user_id} this session, progress left unchanged")
            return ReconciliationResult(progress=progress, saved=False)

        newly_completed = sorted(updated.completed_chapters - progress.completed_chapters)
        try:
            await self.progress_store.save(user_id, updated)
        except Exception as e:
            logger.error(f"Error saving progress for {user_id}: {e}", exc_info=True)
            return ReconciliationResult(progress=progress, saved=False, newly_completed_chapters=newly_completed)

        logger.info(
            f"Saved progress for {user_id}: bookmark {updated.last_read_book} "
            f"{updated.last_read_chapter}:{updated.last_read_verse}, "
            f"newly completed chapters {newly_completed}"
        )
        return ReconciliationResult(progress=updated, saved=True, newly_completed_chapters=newly_completed)
