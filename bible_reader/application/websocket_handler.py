import asyncio
import json
import logging
from typing import Optional

from pydantic import BaseModel, TypeAdapter, ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..domain.entities import (
    ClientMessage,
    ErrorCode,
    ListeningStart,
    OutboundMessage,
    RecognitionEnded,
    RecognitionError,
    SessionFinish,
    SessionStart,
    SessionStop,
    TranscriptUpdate,
    VerseRetry,
)
from ..domain.entities.messages import (
    ErrorOutMessage,
    NoticeMessage,
    ProgressSavedMessage,
    RecognitionCommandMessage,
    SessionCompletedMessage,
    SessionReadyMessage,
    SessionStoppedMessage,
    StateChangedMessage,
    VerseMatchedMessage,
)
from ..domain.services import ReadingService
from ..infrastructure.relay_transcript_source import RelayTranscriptSource

logger = logging.getLogger(__name__)

_client_message_adapter = TypeAdapter(ClientMessage)


def _model(value: Optional[BaseModel]) -> Optional[dict]:
    return value.model_dump(mode="json") if value is not None else None


class WebSocketHandler:

    def __init__(self, reading_service: ReadingService, transcript_source: RelayTranscriptSource):
        self._reading_service = reading_service
        self._transcript_source = transcript_source

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        done, pending = await asyncio.wait(
            {send_task, receive_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            await self._reading_service.stop()
            for t in (send_task, receive_task):
                if not t.done():
                    t.cancel()
            await asyncio.gather(send_task, receive_task, return_exceptions=True)

            try:
                await websocket.close()
            except (RuntimeError, WebSocketDisconnect):
                # Already closed by the client
                pass
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        while self._reading_service._running:
            item: OutboundMessage = await self._reading_service.outbound_queue.get()
            logger.debug(f"_send_loop got message: {type(item).__name__}")

            match item:
                case SessionReadyMessage():
                    data = {
                        "type": "session.ready",
                        "session_id": item.session_id,
                        "book": item.book,
                        "total_verses": item.total_verses,
                        "initial_skip_count": item.initial_skip_count,
                        "current_verse": _model(item.current_verse),
                        "progress": _model(item.progress),
                    }

                case StateChangedMessage():
                    data = {"type": "state.changed", "state": item.state}

                case RecognitionCommandMessage():
                    data = {
                        "type": "recognition.command",
                        "command": item.command,
                        "generation": item.generation,
                        "language": item.language,
                    }

                case VerseMatchedMessage():
                    data = {
                        "type": "verse.matched",
                        "verse": _model(item.verse),
                        "similarity": item.similarity,
                        "progress": _model(item.progress),
                        "next_verse": _model(item.next_verse),
                    }

                case SessionCompletedMessage():
                    data = {
                        "type": "session.completed",
                        "certification_message": item.certification_message,
                        "verses_read": item.verses_read,
                    }

                case SessionStoppedMessage():
                    data = {
                        "type": "session.stopped",
                        "certification_message": item.certification_message,
                        "verses_read": item.verses_read,
                    }

                case ProgressSavedMessage():
                    data = {
                        "type": "progress.saved",
                        "saved": item.saved,
                        "completed_chapters": item.completed_chapters,
                        "newly_completed_chapters": item.newly_completed_chapters,
                    }

                case NoticeMessage():
                    data = {"type": "notice", "message": item.message}

                case ErrorOutMessage():
                    data = {"type": "error", "code": item.code.value, "message": item.message}

                case _:
                    # Unknown message type
                    raise ValueError(f"Unknown OutboundMessage type: {type(item)}")

            await websocket.send_text(json.dumps(data, ensure_ascii=False))

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive messages from client and forward to reading service."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.receive" and data.get("text") is not None:
                await self._handle_control_message(data["text"])

            elif data.get("type") == "websocket.receive":
                logger.warning("Ignoring binary WebSocket frame")

            elif data.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected - received disconnect message: {data}")
                await self._reading_service.close()
                break

    async def _handle_control_message(self, raw: str) -> None:
        """Validate a JSON control message and route it."""
        try:
            message = _client_message_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Invalid client message: {e}")
            await self._reading_service.outbound_queue.put(
                ErrorOutMessage(ErrorCode.INVALID_MESSAGE, f"Invalid message: {e.errors()[0]['msg']}")
            )
            return

        match message:
            case SessionStart():
                await self._reading_service.start_session(message.book, message.start_chapter, message.end_chapter)
            case ListeningStart():
                await self._reading_service.start_listening()
            case TranscriptUpdate():
                await self._transcript_source.receive_transcript(message.text, message.generation)
            case RecognitionError():
                await self._transcript_source.receive_error(message.error)
            case RecognitionEnded():
                await self._transcript_source.receive_end(message.generation)
            case VerseRetry():
                await self._reading_service.retry_verse()
            case SessionStop():
                await self._reading_service.stop_session()
            case SessionFinish():
                await self._reading_service.finish_session()
