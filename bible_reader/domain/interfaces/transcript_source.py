"""Transcript source protocols."""

from typing import Optional, Protocol, runtime_checkable

from ..entities.transcript import TranscriptError


class TranscriptListener(Protocol):
    """Receiver of transcript source events."""

    async def on_transcript(self, text: str, generation: int) -> None:
        """Called with the cumulative transcript and the generation it belongs to."""
        ...

    async def on_transcript_error(self, error: TranscriptError) -> None:
        ...


@runtime_checkable
class TranscriptSource(Protocol):
    """Protocol for a live speech transcript feed.

    Implementations deliver a continuous stream of transcript updates until
    told to stop, restarting themselves after unsolicited terminations.
    Platform quirks stay inside the implementation.
    """

    @property
    def is_listening(self) -> bool:
        ...

    @property
    def transcript(self) -> str:
        """Cumulative transcript since the last start or reset."""
        ...

    @property
    def error(self) -> Optional[TranscriptError]:
        ...

    @property
    def is_supported(self) -> bool:
        """False when speech recognition is absent from the environment."""
        ...

    @property
    def is_constrained(self) -> bool:
        """True on platforms that truncate or restart recognition on their own."""
        ...

    @property
    def generation(self) -> int:
        """Counter bumped on every start, stop and reset."""
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        """Stop listening; no events arrive until ``start`` is called again."""
        ...

    async def reset_buffer(self) -> None:
        ...

    async def prepare_for_next_verse(self) -> None:
        """Clear the transcript so the next verse starts from nothing."""
        ...

    async def restart(self) -> None:
        """Full stop/start cycle, dropping any buffered audio or text."""
        ...
