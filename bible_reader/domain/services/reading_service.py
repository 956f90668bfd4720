"""Reading service driving one user's reading sessions."""

import asyncio
import logging
from typing import Optional

from ..entities.events import (
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
from ..entities.messages import (
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
from ..entities.reading_session import ReadingState, SessionOutcome, SessionState
from ..entities.transcript import TranscriptError
from ..entities.user_progress import UserProgress
from ..entities.websocket_messages import ErrorCode
from ..interfaces.transcript_source import TranscriptSource
from ..interfaces.verse_source import VerseSource
from .difficulty import DifficultyClassifier
from .progress_reconciler import ProgressReconciliationService
from .session_controller import (
    InvalidSelectionError,
    PrepareNextVerse,
    ReconcileProgress,
    Rejected,
    ReportError,
    RestartTranscript,
    SessionController,
    SessionEnded,
    StartTranscript,
    StopTranscript,
    Transition,
    VerseMatched,
)
from .verse_matcher import MatchThresholds, RelaxationPolicy, VerseMatchEngine

logger = logging.getLogger(__name__)


class ReadingService:
    """
    Per-connection service that owns all reading session business logic.

    This service owns:
    - The logged-in user's cached progress
    - The current session state, advanced through ``SessionController``
    - The transcript source, driven by the controller's effects
    - Progress reconciliation when a session ends
    - Emitting messages to the WebSocket layer via async queue

    Events are handled one at a time; transcript events from an older
    transcript generation are dropped so a late result can never match a
    verse that is no longer current.
    """

    def __init__(
        self,
        user_id: str,
        verse_source: VerseSource,
        reconciler: ProgressReconciliationService,
        thresholds: Optional[MatchThresholds] = None,
        policy: RelaxationPolicy = RelaxationPolicy.DIFFICULTY,
        classifier: Optional[DifficultyClassifier] = None,
        language: str = "ko-KR",
    ):
        self.user_id = user_id
        self.verse_source = verse_source
        self.reconciler = reconciler
        self.thresholds = thresholds or MatchThresholds()
        self.policy = policy
        self.classifier = classifier or DifficultyClassifier()
        self.language = language

        self.transcript_source: Optional[TranscriptSource] = None
        self.controller: Optional[SessionController] = None
        self.state = SessionState()
        self.progress: Optional[UserProgress] = None

        # Asyncio queues for communication
        self.inbound_queue: asyncio.Queue[InboundEvent] = asyncio.Queue()
        self.outbound_queue: asyncio.Queue[OutboundMessage] = asyncio.Queue()

        # Service state
        self._running = False
        self._task: Optional[asyncio.Task] = None

        logger.info(f"ReadingService created for user {user_id}")

    def attach_transcript_source(self, source: TranscriptSource) -> None:
        """Bind the transcript source and build the match engine for it."""
        self.transcript_source = source
        engine = VerseMatchEngine(
            thresholds=self.thresholds,
            policy=self.policy,
            classifier=self.classifier,
            constrained_platform=source.is_constrained,
        )
        self.controller = SessionController(engine)

    async def load_progress(self) -> UserProgress:
        self.progress = await self.reconciler.progress_store.load(self.user_id)
        return self.progress

    async def start(self):
        """Load the user's progress and start the event loop."""
        if self._running:
            logger.warning(f"Service for {self.user_id} already running")
            return
        if self.transcript_source is None:
            raise RuntimeError("A transcript source must be attached before starting")

        await self.load_progress()
        self._running = True
        self._task = asyncio.create_task(self._process_inbound_events())
        logger.info(f"ReadingService for {self.user_id} started")

    async def stop(self):
        """Stop the event loop and discard session state."""
        if not self._running:
            return

        self._running = False
        if self.transcript_source and self.transcript_source.is_listening:
            await self.transcript_source.stop()
        self.state = SessionState()
        self.progress = None

        # A close event stops the service from inside its own event loop task
        if self._task and self._task is not asyncio.current_task():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info(f"ReadingService for {self.user_id} stopped")

    async def _process_inbound_events(self):
        """Main event processing loop."""
        logger.info(f"Event processing started for user {self.user_id}")

        try:
            while self._running:
                try:
                    event = await asyncio.wait_for(self.inbound_queue.get(), timeout=1.0)
                    await self._handle_event(event)
                except asyncio.TimeoutError:
                    continue
                except Exception as e:
                    logger.error(f"Error processing event: {e}", exc_info=True)
                    await self._emit_error(ErrorCode.INTERNAL_ERROR, f"Internal processing error: {str(e)}")
        finally:
            logger.info(f"Event processing ended for user {self.user_id}")

    async def _handle_event(self, event: InboundEvent):
        """Route event to appropriate handler based on type."""
        if isinstance(event, TranscriptUpdateEvent):
            await self._handle_transcript_update(event)
        elif isinstance(event, StartSessionEvent):
            await self._handle_start_session(event)
        elif isinstance(event, StartListeningEvent):
            await self._apply(
                self.controller.begin_listening(self.state, self.transcript_source.is_supported)
            )
        elif isinstance(event, TranscriptErrorEvent):
            await self._apply(self.controller.on_transcript_error(self.state, event.error))
        elif isinstance(event, RetryVerseEvent):
            await self._apply(self.controller.retry(self.state))
        elif isinstance(event, StopSessionEvent):
            await self._apply(self.controller.stop(self.state))
        elif isinstance(event, FinishSessionEvent):
            await self._apply(self.controller.finish(self.state))
        elif isinstance(event, CloseEvent):
            await self._handle_close()
        else:
            logger.warning(f"Unknown event type: {type(event)}")

    # ===== Event Handlers =====

    async def _handle_start_session(self, event: StartSessionEvent):
        if self.state.status == ReadingState.LISTENING:
            await self._emit_error(ErrorCode.INVALID_STATE, "진행 중인 세션은 먼저 중지해야 합니다.")
            return

        verses = []
        if 1 <= event.start_chapter <= event.end_chapter:
            verses = self.verse_source.get_verses(event.book, event.start_chapter, event.end_chapter)
        try:
            transition = self.controller.start_session(verses, self.progress)
        except InvalidSelectionError:
            message = self._selection_error_message(event)
            logger.warning(f"Rejected selection {event}: {message}")
            await self._emit_error(ErrorCode.INVALID_SELECTION, message)
            return

        await self._apply(transition)
        state = self.state
        await self.outbound_queue.put(
            SessionReadyMessage(
                session_id=str(state.id),
                book=state.book,
                total_verses=state.total_verses,
                initial_skip_count=state.initial_skip_count,
                current_verse=state.current_verse,
                progress=state.progress(),
            )
        )

    async def _handle_transcript_update(self, event: TranscriptUpdateEvent):
        source = self.transcript_source
        if event.generation != source.generation:
            logger.debug(
                f"Dropping stale transcript from generation {event.generation} "
                f"(current {source.generation})"
            )
            return
        # Later updates may already have replaced the transcript; only the latest counts.
        await self._apply(self.controller.on_transcript(self.state, source.transcript))

    async def _handle_close(self):
        logger.info(f"Closing reading service for {self.user_id}")
        await self._emit_notice("Session closed")
        await self.stop()

    async def _apply(self, transition: Transition):
        """Carry out a transition.

        Transcript source effects run before the new state is committed, so
        the source is already stopped and cleared when a session leaves
        LISTENING.
        """
        source = self.transcript_source
        for effect in transition.effects:
            match effect:
                case StopTranscript():
                    await source.stop()
                case StartTranscript():
                    await source.start()
                case PrepareNextVerse():
                    await source.prepare_for_next_verse()
                case RestartTranscript():
                    await source.restart()

        previous_status = self.state.status
        self.state = transition.state
        if self.state.status != previous_status:
            logger.info(f"Reading state {previous_status.value} -> {self.state.status.value}")
            await self.outbound_queue.put(StateChangedMessage(state=self.state.status.value))

        for effect in transition.effects:
            match effect:
                case VerseMatched(verse=verse, result=result):
                    await self.outbound_queue.put(
                        VerseMatchedMessage(
                            verse=verse,
                            similarity=result.similarity,
                            progress=self.state.progress(),
                            next_verse=self.state.current_verse,
                        )
                    )
                case SessionEnded(reason="completed") as ended:
                    await self.outbound_queue.put(
                        SessionCompletedMessage(ended.certification_message, ended.verses_read)
                    )
                case SessionEnded() as ended:
                    await self.outbound_queue.put(
                        SessionStoppedMessage(ended.certification_message, ended.verses_read)
                    )
                case ReconcileProgress(outcome=outcome):
                    await self._reconcile(outcome)
                case ReportError(message=message):
                    await self._emit_error(ErrorCode.TRANSCRIPT_ERROR, message)
                case Rejected(message=message):
                    logger.info(f"Rejected in state {self.state.status.value}: {message}")
                    await self._emit_notice(message)

    async def _reconcile(self, outcome: SessionOutcome):
        progress = self.progress or UserProgress()
        result = await self.reconciler.reconcile_and_save(self.user_id, progress, outcome)
        if result.saved:
            self.progress = result.progress
        else:
            await self._emit_error(ErrorCode.PERSISTENCE_FAILED, "읽기 기록을 저장하지 못했습니다.")
        await self.outbound_queue.put(
            ProgressSavedMessage(
                saved=result.saved,
                completed_chapters=sorted(result.progress.completed_chapters),
                newly_completed_chapters=result.newly_completed_chapters,
            )
        )

    def _selection_error_message(self, event: StartSessionEvent) -> str:
        if event.start_chapter > event.end_chapter:
            return "시작 장은 마지막 장보다 클 수 없습니다."
        book = self.verse_source.resolve_book(event.book)
        info = next((b for b in self.verse_source.list_books() if b.name == book), None)
        if info is None:
            return f'"{event.book}" 책을 찾을 수 없습니다.'
        if info.chapter_count == 0:
            return f'"{book}" 책은 장/절 정보가 없습니다.'
        if info.has_text:
            return f'"{book}" {event.start_chapter}-{event.end_chapter}장에 해당하는 본문이 없습니다.'
        return f'"{book}" 책의 성경 데이터(본문)가 아직 로드되지 않았습니다.'

    # ===== TranscriptListener =====

    async def on_transcript(self, text: str, generation: int) -> None:
        await self.inbound_queue.put(TranscriptUpdateEvent(text, generation))

    async def on_transcript_error(self, error: TranscriptError) -> None:
        await self.inbound_queue.put(TranscriptErrorEvent(error))

    async def send_recognition_command(self, command: str, generation: int) -> None:
        """Forward a recognizer command to the client."""
        await self.outbound_queue.put(
            RecognitionCommandMessage(command=command, generation=generation, language=self.language)
        )

    # ===== Public API methods (called by WebSocket handler) =====

    async def start_session(self, book: str, start_chapter: int, end_chapter: int):
        await self.inbound_queue.put(StartSessionEvent(book, start_chapter, end_chapter))

    async def start_listening(self):
        await self.inbound_queue.put(StartListeningEvent())

    async def retry_verse(self):
        await self.inbound_queue.put(RetryVerseEvent())

    async def stop_session(self):
        await self.inbound_queue.put(StopSessionEvent())

    async def finish_session(self):
        await self.inbound_queue.put(FinishSessionEvent())

    async def close(self):
        await self.inbound_queue.put(CloseEvent())

    # ===== Outbound message helpers =====

    async def _emit_notice(self, text: str):
        await self.outbound_queue.put(NoticeMessage(text))

    async def _emit_error(self, code: ErrorCode, text: str):
        await self.outbound_queue.put(ErrorOutMessage(code, text))

    def get_session_state(self) -> dict:
        """Get the current session state as a dictionary."""
        return {
            "session_id": str(self.state.id),
            "user_id": self.user_id,
            "status": self.state.status.value,
            "book": self.state.book,
            "current_index": self.state.current_index,
            "total_verses": self.state.total_verses,
            "initial_skip_count": self.state.initial_skip_count,
            "listening": bool(self.transcript_source and self.transcript_source.is_listening),
        }
