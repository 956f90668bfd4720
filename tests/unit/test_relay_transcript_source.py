"""Tests for the relayed transcript source."""

from unittest.mock import AsyncMock

import pytest

from bible_reader.domain.entities import TranscriptErrorCode
from bible_reader.domain.interfaces import TranscriptSource
from bible_reader.infrastructure.relay_transcript_source import RelayTranscriptSource


@pytest.fixture
def send_command():
    return AsyncMock()


@pytest.fixture
def listener():
    return AsyncMock()


@pytest.fixture
def source(send_command, listener):
    return RelayTranscriptSource(send_command=send_command, listener=listener)


@pytest.fixture
def constrained_source(send_command, listener):
    return RelayTranscriptSource(
        send_command=send_command,
        listener=listener,
        constrained=True,
        constrained_settle_delay_ms=0,
        retry_settle_delay_ms=0,
    )


def commands(send_command):
    return [call.args[0] for call in send_command.await_args_list]


class TestRelayTranscriptSource:
    """Test cases for RelayTranscriptSource."""

    def test_implements_protocol(self, source):
        assert isinstance(source, TranscriptSource)

    @pytest.mark.asyncio
    async def test_start_and_stop(self, source, send_command):
        await source.start()
        assert source.is_listening
        await source.start()
        await source.stop()
        assert not source.is_listening
        assert commands(send_command) == ["start", "stop"]

    @pytest.mark.asyncio
    async def test_transcript_forwarded_with_generation(self, source, listener):
        await source.start()
        await source.receive_transcript("태초에", source.generation)
        assert source.transcript == "태초에"
        listener.on_transcript.assert_awaited_once_with("태초에", source.generation)

    @pytest.mark.asyncio
    async def test_transcript_ignored_when_not_listening(self, source, listener):
        await source.receive_transcript("태초에", source.generation)
        assert source.transcript == ""
        listener.on_transcript.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transcript_from_older_generation_ignored(self, source, listener):
        await source.start()
        old = source.generation
        await source.reset_buffer()
        await source.receive_transcript("태초에", old)
        assert source.transcript == ""
        listener.on_transcript.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commands_carry_generation(self, source, send_command):
        await source.start()
        await source.reset_buffer()
        await source.stop()
        assert [call.args for call in send_command.await_args_list] == [("start", 1), ("reset", 2), ("stop", 3)]

    @pytest.mark.asyncio
    async def test_unsolicited_end_from_older_generation_still_restarts(self, source, send_command):
        await source.start()
        old = source.generation
        await source.reset_buffer()
        await source.receive_end(old)
        assert commands(send_command) == ["start", "reset", "start"]

    @pytest.mark.asyncio
    async def test_generation_bumps_on_start_stop_reset(self, source):
        generations = [source.generation]
        await source.start()
        generations.append(source.generation)
        await source.reset_buffer()
        generations.append(source.generation)
        await source.stop()
        generations.append(source.generation)
        assert generations == sorted(set(generations))

    @pytest.mark.asyncio
    async def test_reset_clears_transcript(self, source, send_command):
        await source.start()
        await source.receive_transcript("태초에", source.generation)
        await source.reset_buffer()
        assert source.transcript == ""
        assert commands(send_command) == ["start", "reset"]

    @pytest.mark.asyncio
    async def test_unsolicited_end_restarts(self, source, send_command, listener):
        await source.start()
        await source.receive_end(source.generation)
        assert source.is_listening
        assert commands(send_command) == ["start", "start"]
        listener.on_transcript_error.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_end_after_stop_is_quiet(self, source, send_command):
        await source.start()
        await source.stop()
        await source.receive_end(source.generation)
        assert not source.is_listening
        assert commands(send_command) == ["start", "stop"]

    @pytest.mark.asyncio
    async def test_prepare_for_next_verse_soft_reset(self, source, send_command):
        await source.start()
        await source.prepare_for_next_verse()
        assert source.is_listening
        assert commands(send_command) == ["start", "reset"]

    @pytest.mark.asyncio
    async def test_prepare_for_next_verse_constrained_cycles(self, constrained_source, send_command):
        await constrained_source.start()
        await constrained_source.prepare_for_next_verse()
        assert constrained_source.is_listening
        assert commands(send_command) == ["start", "stop", "start"]

        # The end notice for that stop must not trigger another start
        await constrained_source.receive_end(constrained_source.generation)
        assert commands(send_command) == ["start", "stop", "start"]

    @pytest.mark.asyncio
    async def test_restart(self, constrained_source, send_command):
        await constrained_source.start()
        await constrained_source.receive_transcript("태초에", constrained_source.generation)
        await constrained_source.restart()
        assert constrained_source.transcript == ""
        assert commands(send_command) == ["start", "stop", "start"]

    @pytest.mark.asyncio
    async def test_recoverable_error(self, source, listener):
        await source.start()
        await source.receive_error("no-speech")
        assert source.is_listening
        assert source.error.code == TranscriptErrorCode.NO_SPEECH
        listener.on_transcript_error.assert_awaited_once_with(source.error)

    @pytest.mark.asyncio
    async def test_fatal_error_stops_listening(self, source):
        await source.start()
        await source.receive_error("unsupported")
        assert not source.is_listening

    @pytest.mark.asyncio
    async def test_unsupported_source_does_not_start(self, send_command, listener):
        source = RelayTranscriptSource(send_command=send_command, listener=listener, supported=False)
        await source.start()
        assert not source.is_listening
        assert source.error.code == TranscriptErrorCode.UNSUPPORTED
        send_command.assert_not_awaited()
