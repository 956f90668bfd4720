"""Transcript source relaying a client-side speech recognizer."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..domain.entities.transcript import TranscriptError
from ..domain.interfaces.transcript_source import TranscriptListener, TranscriptSource

logger = logging.getLogger(__name__)

CommandSender = Callable[[str, int], Awaitable[None]]


class RelayTranscriptSource(TranscriptSource):
    """TranscriptSource fed by a recognizer running on the client.

    The client relays its cumulative transcript, error codes and
    "recognition ended" notices; this adapter answers with ``start``,
    ``stop`` and ``reset`` commands. Terminations the client reports
    without having been asked to stop are answered with a fresh ``start``
    and never surface to the listener.

    Every command carries the generation it opens and the client echoes the
    generation of the last command it applied. Transcripts produced before
    the client saw the latest start, stop or reset are therefore recognizable
    and dropped here.

    Constrained platforms cannot clear a running recognizer, so moving to
    the next verse stops it, waits for it to settle and starts it again.
    """

    def __init__(
        self,
        send_command: CommandSender,
        listener: TranscriptListener,
        supported: bool = True,
        constrained: bool = False,
        constrained_settle_delay_ms: int = 150,
        retry_settle_delay_ms: int = 100,
    ):
        self._send_command = send_command
        self._listener = listener
        self._supported = supported
        self._constrained = constrained
        self._constrained_settle_delay = constrained_settle_delay_ms / 1000
        self._retry_settle_delay = retry_settle_delay_ms / 1000

        self._listening = False
        self._transcript = ""
        self._error: Optional[TranscriptError] = None
        self._generation = 0
        # Number of "ended" notices still owed for stop commands we sent
        self._pending_stop_ends = 0

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def error(self) -> Optional[TranscriptError]:
        return self._error

    @property
    def is_supported(self) -> bool:
        return self._supported

    @property
    def is_constrained(self) -> bool:
        return self._constrained

    @property
    def generation(self) -> int:
        return self._generation

    async def start(self) -> None:
        if self._listening:
            return
        if not self._supported:
            self._error = TranscriptError.from_code("unsupported")
            logger.warning("Cannot start transcript source: speech recognition unsupported")
            return

        self._listening = True
        self._transcript = ""
        self._error = None
        self._generation += 1
        logger.debug(f"Transcript source started (generation {self._generation})")
        await self._send_command("start", self._generation)

    async def stop(self) -> None:
        self._transcript = ""
        if not self._listening:
            return

        self._listening = False
        self._pending_stop_ends += 1
        self._generation += 1
        logger.debug(f"Transcript source stopped (generation {self._generation})")
        await self._send_command("stop", self._generation)

    async def reset_buffer(self) -> None:
        self._transcript = ""
        self._generation += 1
        if self._listening:
            await self._send_command("reset", self._generation)

    async def prepare_for_next_verse(self) -> None:
        if not self._constrained:
            await self.reset_buffer()
            return
        await self.stop()
        await asyncio.sleep(self._constrained_settle_delay)
        await self.start()

    async def restart(self) -> None:
        await self.stop()
        await asyncio.sleep(self._retry_settle_delay)
        await self.start()

    # ===== Relay inputs (called by the WebSocket handler) =====

    async def receive_transcript(self, text: str, generation: int) -> None:
        """Accept the client's cumulative transcript for ``generation``."""
        if not self._listening:
            logger.debug("Ignoring transcript received while not listening")
            return
        if generation != self._generation:
            logger.debug(f"Ignoring transcript from generation {generation} (current {self._generation})")
            return
        self._transcript = text
        self._error = None
        await self._listener.on_transcript(text, self._generation)

    async def receive_error(self, code: str) -> None:
        error = TranscriptError.from_code(code)
        self._error = error
        logger.warning(f"Recognizer reported {error.code.value}: {error.message}")
        if error.is_fatal:
            self._listening = False
            self._generation += 1
        await self._listener.on_transcript_error(error)

    async def receive_end(self, generation: int) -> None:
        """Handle the client's recognizer having terminated.

        Ends are matched against the stops we requested rather than by
        generation: a recognizer that died just before a reset reached it
        still reports the older generation and must be restarted.
        """
        if self._pending_stop_ends > 0:
            self._pending_stop_ends -= 1
            logger.debug(f"Recognizer ended after requested stop (generation {generation})")
            return
        if not self._listening:
            return
        logger.info("Recognizer ended without being stopped, restarting it")
        await self._send_command("start", self._generation)
