"""Tests for the per-connection ReadingService."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from bible_reader.domain.entities import ReadingState, UserProgress
from bible_reader.domain.entities.events import (
    FinishSessionEvent,
    RetryVerseEvent,
    StartListeningEvent,
    StartSessionEvent,
    StopSessionEvent,
)
from bible_reader.domain.entities.messages import (
    ErrorOutMessage,
    NoticeMessage,
    ProgressSavedMessage,
    RecognitionCommandMessage,
    SessionReadyMessage,
    SessionStoppedMessage,
    StateChangedMessage,
    VerseMatchedMessage,
)
from bible_reader.domain.entities.websocket_messages import ErrorCode
from bible_reader.domain.services.progress_reconciler import ProgressReconciliationService
from bible_reader.domain.services.reading_service import ReadingService
from bible_reader.infrastructure.json_verse_source import JsonVerseSource
from bible_reader.infrastructure.local_progress_store import LocalProgressStore
from bible_reader.infrastructure.relay_transcript_source import RelayTranscriptSource

PSALM_23 = {
    "1": "여호와는 나의 목자시니 내게 부족함이 없으리로다",
    "2": "그가 나를 푸른 풀밭에 누이시며 쉴 만한 물 가로 인도하시는도다",
    "3": "내 영혼을 소생시키시고 자기 이름을 위하여 의의 길로 인도하시는도다",
}


@pytest.fixture
def verse_source():
    return JsonVerseSource({"시편": {"23": PSALM_23}})


@pytest.fixture
def progress_store():
    return LocalProgressStore()


@pytest.fixture
def reading_service(verse_source, progress_store):
    service = ReadingService(
        user_id="reader-1",
        verse_source=verse_source,
        reconciler=ProgressReconciliationService(verse_source, progress_store),
    )
    source = RelayTranscriptSource(send_command=service.send_recognition_command, listener=service)
    service.attach_transcript_source(source)
    return service


async def drain(service: ReadingService) -> None:
    """Handle every queued inbound event in order."""
    while not service.inbound_queue.empty():
        await service._handle_event(service.inbound_queue.get_nowait())


def outbound(service: ReadingService) -> list:
    messages = []
    while not service.outbound_queue.empty():
        messages.append(service.outbound_queue.get_nowait())
    return messages


async def relay(service: ReadingService, text: str) -> None:
    """Relay a transcript tagged with the generation the client last applied."""
    source = service.transcript_source
    await source.receive_transcript(text, source.generation)


async def start_listening(service: ReadingService) -> None:
    await service.load_progress()
    await service._handle_event(StartSessionEvent("시편", 23, 23))
    await service._handle_event(StartListeningEvent())
    outbound(service)


class TestSessionStart:
    """Test cases for starting sessions."""

    @pytest.mark.asyncio
    async def test_start_emits_state_and_ready(self, reading_service):
        await reading_service.load_progress()
        await reading_service._handle_event(StartSessionEvent("시편", 23, 23))

        messages = outbound(reading_service)
        assert messages[0] == StateChangedMessage(state="reading")
        ready = messages[1]
        assert isinstance(ready, SessionReadyMessage)
        assert ready.book == "시편"
        assert ready.total_verses == 3
        assert ready.current_verse.verse == 1

    @pytest.mark.asyncio
    async def test_unknown_book_is_rejected(self, reading_service):
        await reading_service._handle_event(StartSessionEvent("없는책", 1, 1))
        messages = outbound(reading_service)
        assert messages == [ErrorOutMessage(ErrorCode.INVALID_SELECTION, '"없는책" 책을 찾을 수 없습니다.')]
        assert reading_service.state.status == ReadingState.IDLE

    @pytest.mark.asyncio
    async def test_book_without_text_is_rejected(self, reading_service):
        await reading_service._handle_event(StartSessionEvent("출애굽기", 1, 1))
        message = outbound(reading_service)[0]
        assert message.message == '"출애굽기" 책의 성경 데이터(본문)가 아직 로드되지 않았습니다.'

    @pytest.mark.asyncio
    async def test_abbreviated_book_without_text_is_rejected(self, reading_service):
        await reading_service._handle_event(StartSessionEvent("출", 1, 1))
        message = outbound(reading_service)[0]
        assert message == ErrorOutMessage(
            ErrorCode.INVALID_SELECTION, '"출애굽기" 책의 성경 데이터(본문)가 아직 로드되지 않았습니다.'
        )

    @pytest.mark.asyncio
    async def test_inverted_range_is_rejected(self, reading_service):
        await reading_service._handle_event(StartSessionEvent("시편", 23, 22))
        message = outbound(reading_service)[0]
        assert message.code == ErrorCode.INVALID_SELECTION

    @pytest.mark.asyncio
    async def test_resume_uses_stored_bookmark(self, reading_service, progress_store):
        await progress_store.save("reader-1", UserProgress(last_read_book="시편", last_read_chapter=23, last_read_verse=2))
        await reading_service.load_progress()
        await reading_service._handle_event(StartSessionEvent("시편", 23, 23))
        ready = outbound(reading_service)[1]
        assert ready.initial_skip_count == 2
        assert ready.current_verse.verse == 3


class TestListening:
    """Test cases for transcript handling."""

    @pytest.mark.asyncio
    async def test_listening_sends_start_command(self, reading_service):
        await reading_service.load_progress()
        await reading_service._handle_event(StartSessionEvent("시편", 23, 23))
        outbound(reading_service)
        await reading_service._handle_event(StartListeningEvent())

        messages = outbound(reading_service)
        assert RecognitionCommandMessage(command="start", generation=1, language="ko-KR") in messages
        assert StateChangedMessage(state="listening") in messages

    @pytest.mark.asyncio
    async def test_match_emits_verse_and_reset(self, reading_service):
        await start_listening(reading_service)
        await relay(reading_service, PSALM_23["1"])
        await drain(reading_service)

        messages = outbound(reading_service)
        assert messages[0] == RecognitionCommandMessage(command="reset", generation=2, language="ko-KR")
        matched = messages[1]
        assert isinstance(matched, VerseMatchedMessage)
        assert matched.verse.verse == 1
        assert matched.next_verse.verse == 2
        assert reading_service.state.current_index == 1

    @pytest.mark.asyncio
    async def test_stale_transcript_is_dropped(self, reading_service):
        await start_listening(reading_service)
        await relay(reading_service, PSALM_23["1"])
        await reading_service.transcript_source.reset_buffer()
        await drain(reading_service)

        assert reading_service.state.current_index == 0
        assert not any(isinstance(m, VerseMatchedMessage) for m in outbound(reading_service))

    @pytest.mark.asyncio
    async def test_transcript_sent_before_reset_cannot_advance_next_verse(self, reading_service):
        await start_listening(reading_service)
        source = reading_service.transcript_source
        before_reset = source.generation
        await relay(reading_service, PSALM_23["1"])
        await drain(reading_service)
        assert reading_service.state.current_index == 1
        outbound(reading_service)

        # Client had not yet applied the reset when it sent this one
        await source.receive_transcript(PSALM_23["2"], before_reset)
        await drain(reading_service)
        assert reading_service.state.current_index == 1
        assert outbound(reading_service) == []

        await relay(reading_service, PSALM_23["2"])
        await drain(reading_service)
        assert reading_service.state.current_index == 2

    @pytest.mark.asyncio
    async def test_transcript_error_is_reported(self, reading_service):
        await start_listening(reading_service)
        await reading_service.transcript_source.receive_error("not-allowed")
        await drain(reading_service)

        assert outbound(reading_service) == [
            ErrorOutMessage(ErrorCode.TRANSCRIPT_ERROR, "마이크 사용이 차단되었습니다.")
        ]
        assert reading_service.state.status == ReadingState.LISTENING

    @pytest.mark.asyncio
    async def test_unsupported_speech_enters_error(self, verse_source, progress_store):
        service = ReadingService(
            user_id="reader-2",
            verse_source=verse_source,
            reconciler=ProgressReconciliationService(verse_source, progress_store),
        )
        service.attach_transcript_source(
            RelayTranscriptSource(send_command=service.send_recognition_command, listener=service, supported=False)
        )
        await service._handle_event(StartSessionEvent("시편", 23, 23))
        await service._handle_event(StartListeningEvent())

        assert service.state.status == ReadingState.ERROR
        assert outbound(service)[-1].code == ErrorCode.TRANSCRIPT_ERROR

    @pytest.mark.asyncio
    async def test_retry_restarts_recognizer(self, reading_service):
        reading_service.transcript_source._retry_settle_delay = 0
        await start_listening(reading_service)
        await reading_service._handle_event(RetryVerseEvent())

        commands = [m.command for m in outbound(reading_service) if isinstance(m, RecognitionCommandMessage)]
        assert commands == ["stop", "start"]
        assert reading_service.transcript_source.is_listening

    @pytest.mark.asyncio
    async def test_retry_when_idle_gives_notice(self, reading_service):
        await reading_service._handle_event(RetryVerseEvent())
        messages = outbound(reading_service)
        assert len(messages) == 1
        assert isinstance(messages[0], NoticeMessage)


class TestStopAndFinish:
    """Test cases for stopping and finishing sessions."""

    @pytest.mark.asyncio
    async def test_stop_saves_progress(self, reading_service, progress_store):
        await start_listening(reading_service)
        await relay(reading_service, PSALM_23["1"])
        await drain(reading_service)
        outbound(reading_service)

        await reading_service._handle_event(StopSessionEvent())

        messages = outbound(reading_service)
        assert messages[0] == RecognitionCommandMessage(command="stop", generation=3, language="ko-KR")
        assert messages[1] == StateChangedMessage(state="idle")
        assert messages[2] == SessionStoppedMessage("시편 23장 1절 ~ 시편 23장 1절 (총 1절) 읽음 (세션 중지)", 1)
        assert messages[3] == ProgressSavedMessage(saved=True, completed_chapters=[], newly_completed_chapters=[])
        stored = await progress_store.load("reader-1")
        assert (stored.last_read_chapter, stored.last_read_verse) == (23, 1)
        assert reading_service.progress == stored
        assert not reading_service.transcript_source.is_listening

    @pytest.mark.asyncio
    async def test_fatal_recognizer_error_saves_progress(self, reading_service, progress_store):
        await start_listening(reading_service)
        await relay(reading_service, PSALM_23["1"])
        await drain(reading_service)
        outbound(reading_service)

        await reading_service.transcript_source.receive_error("unsupported")
        await drain(reading_service)

        messages = outbound(reading_service)
        assert reading_service.state.status == ReadingState.ERROR
        assert SessionStoppedMessage("시편 23장 1절 ~ 시편 23장 1절 (총 1절) 읽음 (세션 중지)", 1) in messages
        assert ProgressSavedMessage(saved=True, completed_chapters=[], newly_completed_chapters=[]) in messages
        stored = await progress_store.load("reader-1")
        assert (stored.last_read_chapter, stored.last_read_verse) == (23, 1)

    @pytest.mark.asyncio
    async def test_failed_save_is_reported(self, verse_source):
        store = AsyncMock()
        store.load.return_value = UserProgress()
        store.save.side_effect = RuntimeError("write failed")
        service = ReadingService(
            user_id="reader-3",
            verse_source=verse_source,
            reconciler=ProgressReconciliationService(verse_source, store),
        )
        service.attach_transcript_source(
            RelayTranscriptSource(send_command=service.send_recognition_command, listener=service)
        )
        await start_listening(service)
        await relay(service, PSALM_23["1"])
        await drain(service)
        await service._handle_event(StopSessionEvent())

        messages = outbound(service)
        assert ErrorOutMessage(ErrorCode.PERSISTENCE_FAILED, "읽기 기록을 저장하지 못했습니다.") in messages
        assert ProgressSavedMessage(saved=False, completed_chapters=[], newly_completed_chapters=[]) in messages
        assert service.progress == UserProgress()

    @pytest.mark.asyncio
    async def test_finish_after_stop_resets(self, reading_service):
        await start_listening(reading_service)
        await reading_service._handle_event(StopSessionEvent())
        await reading_service._handle_event(FinishSessionEvent())
        assert reading_service.state.status == ReadingState.IDLE
        assert reading_service.state.target_verses == []


class TestEventLoop:
    """Test cases for the background event loop."""

    @pytest.mark.asyncio
    async def test_start_requires_transcript_source(self, verse_source, progress_store):
        service = ReadingService(
            user_id="reader-4",
            verse_source=verse_source,
            reconciler=ProgressReconciliationService(verse_source, progress_store),
        )
        with pytest.raises(RuntimeError):
            await service.start()

    @pytest.mark.asyncio
    async def test_events_processed_in_background(self, reading_service):
        await reading_service.start()
        try:
            await reading_service.start_session("시편", 23, 23)
            first = await asyncio.wait_for(reading_service.outbound_queue.get(), timeout=2.0)
            assert first == StateChangedMessage(state="reading")
            assert reading_service.get_session_state()["status"] == "reading"
        finally:
            await reading_service.stop()
        assert not reading_service._running
        assert reading_service.progress is None

    @pytest.mark.asyncio
    async def test_close_event_stops_service(self, reading_service):
        await reading_service.start()
        await reading_service.close()
        notice = await asyncio.wait_for(reading_service.outbound_queue.get(), timeout=2.0)
        assert notice == NoticeMessage("Session closed")
        await asyncio.wait_for(reading_service._task, timeout=2.0)
        assert not reading_service._running
