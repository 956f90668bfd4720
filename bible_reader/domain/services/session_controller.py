"""Session progression as a reducer: ``(state, event) -> (state, effects)``.

The controller never performs I/O. Each operation returns the next
``SessionState`` together with the effects the caller has to carry out
(driving the transcript source, persisting progress, informing the user).
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..entities.reading_session import ReadingState, SessionOutcome, SessionState
from ..entities.transcript import TranscriptError
from ..entities.user_progress import UserProgress
from ..entities.verse import Verse
from .verse_matcher import MatchResult, VerseMatchEngine

logger = logging.getLogger(__name__)

NOTHING_READ_MESSAGE = "이번 세션에서 읽은 구절이 없습니다."


class InvalidSelectionError(ValueError):
    """Raised when a selection produces no verses to read."""


# ===== Effects =====


class Effect:
    """Base class for effects requested by the controller."""

    pass


@dataclass(frozen=True)
class StartTranscript(Effect):
    pass


@dataclass(frozen=True)
class StopTranscript(Effect):
    """Stop the source and clear its buffer."""

    pass


@dataclass(frozen=True)
class PrepareNextVerse(Effect):
    pass


@dataclass(frozen=True)
class RestartTranscript(Effect):
    pass


@dataclass(frozen=True)
class VerseMatched(Effect):
    verse: Verse
    result: MatchResult


@dataclass(frozen=True)
class SessionEnded(Effect):
    reason: str
    certification_message: str
    verses_read: int


@dataclass(frozen=True)
class ReconcileProgress(Effect):
    outcome: SessionOutcome


@dataclass(frozen=True)
class ReportError(Effect):
    message: str
    fatal: bool = False


@dataclass(frozen=True)
class Rejected(Effect):
    """An operation that is not valid in the current state."""

    message: str


@dataclass
class Transition:
    state: SessionState
    effects: list[Effect] = field(default_factory=list)


# ===== Certification messages =====


def _verse_label(verse: Verse) -> str:
    return f"{verse.book} {verse.chapter}장 {verse.verse}절"


def completion_message(first: Verse, last: Verse, count: int) -> str:
    return f"{_verse_label(first)} ~ {_verse_label(last)} (총 {count}절) 읽기 완료!"


def stopped_message(first: Verse, last: Verse, count: int) -> str:
    return f"{_verse_label(first)} ~ {_verse_label(last)} (총 {count}절) 읽음 (세션 중지)"


def count_resumed_verses(verses: list[Verse], progress: Optional[UserProgress]) -> int:
    """Count leading verses already read according to the user's bookmark.

    Only a bookmark in the same book skips anything. A bookmark at or past
    the end of the selection skips nothing so the range is read again.
    """
    if not verses or progress is None or not progress.has_bookmark:
        return 0
    if progress.last_read_book != verses[0].book:
        return 0

    bookmark = (progress.last_read_chapter, progress.last_read_verse)
    skipped = 0
    for verse in verses:
        if verse.position > bookmark:
            break
        skipped += 1
    if skipped >= len(verses):
        return 0
    return skipped


class SessionController:
    """Owns the reading state machine.

    IDLE -> READING -> LISTENING -> SESSION_COMPLETED, with retry staying in
    LISTENING, stop returning to IDLE and ERROR reached when the transcript
    source is unusable.
    """

    def __init__(self, engine: VerseMatchEngine):
        self.engine = engine

    def start_session(self, verses: list[Verse], progress: Optional[UserProgress] = None) -> Transition:
        """Load the target verses and resume past the bookmark.

        Raises:
            InvalidSelectionError: If there are no verses to read.
        """
        if not verses:
            raise InvalidSelectionError("선택한 범위에 읽을 구절이 없습니다.")

        skip = count_resumed_verses(verses, progress)
        state = SessionState(
            status=ReadingState.READING,
            target_verses=list(verses),
            current_index=skip,
            initial_skip_count=skip,
        )
        logger.info(
            f"Session {state.id} loaded {len(verses)} verses of {verses[0].book}, "
            f"resuming after {skip} already read"
        )
        return Transition(state)

    def begin_listening(self, state: SessionState, source_supported: bool = True) -> Transition:
        if state.status == ReadingState.LISTENING:
            return Transition(state)
        if state.status != ReadingState.READING:
            return Transition(state, [Rejected(f"Cannot start listening while {state.status.value}")])

        if not source_supported:
            message = TranscriptError.from_code("unsupported").message
            errored = state.model_copy(update={"status": ReadingState.ERROR, "error_message": message})
            logger.warning(f"Session {state.id}: speech recognition unsupported, entering error state")
            return Transition(errored, [ReportError(message, fatal=True)])

        listening = state.model_copy(
            update={"status": ReadingState.LISTENING, "transcript_buffer": "", "error_message": None}
        )
        return Transition(listening, [StartTranscript()])

    def on_transcript(self, state: SessionState, transcript: str) -> Transition:
        """Evaluate the latest transcript and advance on a match."""
        if state.status != ReadingState.LISTENING:
            return Transition(state)

        state = state.model_copy(update={"transcript_buffer": transcript})
        verse = state.current_verse
        result = self.engine.evaluate(verse, transcript)
        if result is None or not result.matched:
            return Transition(state)
        return self._advance(state, verse, result)

    def _advance(self, state: SessionState, verse: Verse, result: MatchResult) -> Transition:
        matched_text = state.matched_text + f"{verse.citation} - {verse.text}\n"
        next_index = state.current_index + 1
        advanced = state.model_copy(
            update={
                "current_index": next_index,
                "matched_text": matched_text,
                "transcript_buffer": "",
            }
        )
        effects: list[Effect] = [VerseMatched(verse, result)]

        if next_index < len(state.target_verses):
            effects.append(PrepareNextVerse())
            return Transition(advanced, effects)

        outcome = self._outcome(advanced, "completed")
        first = outcome.first_read_verse or advanced.target_verses[0]
        last = advanced.target_verses[-1]
        message = completion_message(first, last, outcome.verses_read)
        completed = advanced.model_copy(
            update={"status": ReadingState.SESSION_COMPLETED, "certification_message": message}
        )
        logger.info(f"Session {state.id} completed: {message}")

        effects = [StopTranscript()] + effects + [SessionEnded("completed", message, outcome.verses_read)]
        if outcome.verses_read > 0:
            effects.append(ReconcileProgress(outcome))
        return Transition(completed, effects)

    def retry(self, state: SessionState) -> Transition:
        if state.status != ReadingState.LISTENING:
            return Transition(state, [Rejected("다시 읽기는 음성 인식 중에만 가능합니다.")])
        retried = state.model_copy(
            update={"transcript_buffer": "", "matched_text": "", "error_message": None}
        )
        return Transition(retried, [RestartTranscript()])

    def stop(self, state: SessionState) -> Transition:
        """Stop the session, keeping the matched text visible."""
        if state.status not in (ReadingState.LISTENING, ReadingState.READING):
            return Transition(state, [Rejected(f"No active session to stop ({state.status.value})")])

        outcome = self._outcome(state, "stopped")
        effects: list[Effect] = [StopTranscript()]
        if outcome.verses_read > 0:
            message = stopped_message(outcome.first_read_verse, outcome.last_covered_verse, outcome.verses_read)
            effects += [SessionEnded("stopped", message, outcome.verses_read), ReconcileProgress(outcome)]
        else:
            message = NOTHING_READ_MESSAGE
            effects.append(SessionEnded("stopped", message, 0))

        stopped = state.model_copy(
            update={
                "status": ReadingState.IDLE,
                "transcript_buffer": "",
                "certification_message": message,
            }
        )
        logger.info(f"Session {state.id} stopped after {outcome.verses_read} verses read")
        return Transition(stopped, effects)

    def on_transcript_error(self, state: SessionState, error: TranscriptError) -> Transition:
        """Record a transcript source error.

        A fatal error ends the session in ERROR. Verses read before it are
        certified and reconciled the same way a manual stop would.
        """
        if error.is_fatal and state.status in (ReadingState.READING, ReadingState.LISTENING):
            update = {"status": ReadingState.ERROR, "error_message": error.message, "transcript_buffer": ""}
            effects: list[Effect] = [StopTranscript(), ReportError(error.message, fatal=True)]

            outcome = self._outcome(state, "stopped")
            if outcome.verses_read > 0:
                message = stopped_message(outcome.first_read_verse, outcome.last_covered_verse, outcome.verses_read)
                update["certification_message"] = message
                effects += [SessionEnded("stopped", message, outcome.verses_read), ReconcileProgress(outcome)]
                logger.info(f"Session {state.id} ended by {error.code.value} after {outcome.verses_read} verses read")

            return Transition(state.model_copy(update=update), effects)

        updated = state.model_copy(update={"error_message": error.message})
        return Transition(updated, [ReportError(error.message, fatal=error.is_fatal)])

    def finish(self, state: SessionState) -> Transition:
        """Return to IDLE from a completed, stopped or errored session."""
        if state.status in (ReadingState.READING, ReadingState.LISTENING):
            return Transition(state, [Rejected("진행 중인 세션은 먼저 중지해야 합니다.")])
        return Transition(SessionState())

    @staticmethod
    def _outcome(state: SessionState, reason: str) -> SessionOutcome:
        return SessionOutcome(
            reason=reason,
            target_verses=state.target_verses,
            initial_skip_count=state.initial_skip_count,
            completed_count=state.completed_count,
        )
