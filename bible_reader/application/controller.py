"""Bible Reading Controller for handling business logic and coordination."""

import logging

from fastapi import WebSocket

from ..domain.entities import UserProgress
from ..domain.interfaces.progress_store import ProgressStore
from ..domain.interfaces.verse_source import VerseSource
from ..domain.services import (
    DifficultyClassifier,
    MatchThresholds,
    ProgressReconciliationService,
    ReadingService,
    RelaxationPolicy,
    suggest_resume_selection,
    summarize_book_completion,
)
from ..infrastructure import (
    DynamoDBProgressStore,
    JsonVerseSource,
    LocalProgressStore,
    RelayTranscriptSource,
    S3VerseSource,
)
from .config import Settings
from .websocket_handler import WebSocketHandler

logger = logging.getLogger(__name__)


class BibleReadingController:
    """
    Controller for coordinating bible reading operations.

    This controller is injected with the verse source and progress store and
    handles the business logic for each endpoint, keeping the API layer thin.
    """

    def __init__(
        self,
        verse_source: VerseSource,
        progress_store: ProgressStore,
        settings: Settings,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            verse_source: Authoritative verse data
            progress_store: Durable per-user progress
            settings: Matching and speech configuration
        """
        self.verse_source = verse_source
        self.progress_store = progress_store
        self.settings = settings
        self.reconciler = ProgressReconciliationService(verse_source, progress_store)
        self.thresholds = MatchThresholds.from_settings(settings)
        self.policy = RelaxationPolicy(settings.relaxation_policy)
        self.classifier = DifficultyClassifier(settings.extra_difficult_words)

        logger.info(
            f"BibleReadingController initialized with {type(verse_source).__name__}, "
            f"{type(progress_store).__name__}, relaxation policy {self.policy.value}"
        )

    def create_reading_service(
        self,
        user_id: str,
        platform: str = "",
        speech_supported: bool = True,
    ) -> tuple[ReadingService, RelayTranscriptSource]:
        """Build the per-connection reading service and its transcript relay."""
        service = ReadingService(
            user_id=user_id,
            verse_source=self.verse_source,
            reconciler=self.reconciler,
            thresholds=self.thresholds,
            policy=self.policy,
            classifier=self.classifier,
            language=self.settings.speech_language,
        )
        constrained = platform.lower() in {p.lower() for p in self.settings.constrained_platforms}
        source = RelayTranscriptSource(
            send_command=service.send_recognition_command,
            listener=service,
            supported=speech_supported,
            constrained=constrained,
            constrained_settle_delay_ms=self.settings.constrained_settle_delay_ms,
            retry_settle_delay_ms=self.settings.retry_settle_delay_ms,
        )
        service.attach_transcript_source(source)
        return service, source

    async def handle_websocket_connection(
        self,
        websocket: WebSocket,
        user_id: str,
        platform: str = "",
        speech_supported: bool = True,
    ) -> None:
        logger.info(f"Handling new WebSocket connection for {user_id} from {websocket.client}")

        reading_service, source = self.create_reading_service(user_id, platform, speech_supported)
        handler = WebSocketHandler(reading_service=reading_service, transcript_source=source)

        await reading_service.start()
        try:
            await handler.handle_websocket(websocket)
        finally:
            await reading_service.stop()
            logger.info(f"Reading service for {user_id} discarded")

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "providers": {
                "verse_source": type(self.verse_source).__name__,
                "progress_store": type(self.progress_store).__name__,
            },
        }

    def list_books(self) -> list:
        return [book.model_dump() for book in self.verse_source.list_books()]

    async def get_progress(self, user_id: str) -> UserProgress:
        return await self.progress_store.load(user_id)

    async def update_progress(self, user_id: str, progress: UserProgress) -> UserProgress:
        """
        Upsert a user's progress.

        Completed chapters already stored are kept even if the update
        omits them.
        """
        stored = await self.progress_store.load(user_id)
        merged = stored.merged_with(progress)
        await self.progress_store.save(user_id, merged)
        logger.info(f"Progress for {user_id} updated, {len(merged.completed_chapters)} chapters completed")
        return merged

    async def get_completed_chapters(self, user_id: str) -> list[str]:
        progress = await self.progress_store.load(user_id)
        return sorted(progress.completed_chapters)

    async def get_resume_selection(self, user_id: str) -> dict:
        progress = await self.progress_store.load(user_id)
        selection = suggest_resume_selection(progress, self.verse_source.list_books(), self.verse_source)
        return {
            "book": selection.book,
            "chapter": selection.chapter,
            "last_read_book": progress.last_read_book,
            "last_read_chapter": progress.last_read_chapter,
            "last_read_verse": progress.last_read_verse,
        }

    async def get_book_completion(self, user_id: str) -> list:
        """
        Get per-book chapter completion for a user.

        Returns:
            List of dicts with book, completed chapters, chapter count and
            percentage, in canonical book order.
        """
        progress = await self.progress_store.load(user_id)
        return [
            {
                "book": entry.book,
                "completed_chapters": entry.completed_chapters,
                "chapter_count": entry.chapter_count,
                "percentage": round(entry.percentage, 1),
            }
            for entry in summarize_book_completion(progress, self.verse_source.list_books())
        ]


def build_controller(settings: Settings) -> BibleReadingController:
    """Select collaborator implementations from settings."""
    if settings.verse_source_type == "s3":
        verse_source = S3VerseSource(
            bucket_name=settings.bible_bucket_name,
            object_key=settings.bible_object_key,
            region_name=settings.aws_region,
        )
    elif settings.verse_source_type == "file":
        verse_source = JsonVerseSource.from_file(settings.bible_data_path)
    else:
        raise ValueError(f"Unknown verse source type: {settings.verse_source_type}")

    if settings.progress_store_type == "dynamodb":
        progress_store = DynamoDBProgressStore(
            table_name=settings.progress_table_name,
            region_name=settings.aws_region,
        )
    elif settings.progress_store_type == "local":
        progress_store = LocalProgressStore()
    else:
        raise ValueError(f"Unknown progress store type: {settings.progress_store_type}")

    return BibleReadingController(verse_source, progress_store, settings)
