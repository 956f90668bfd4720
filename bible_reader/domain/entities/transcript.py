"""Transcript source error entities."""

from dataclasses import dataclass
from enum import Enum


class TranscriptErrorCode(str, Enum):
    """Error codes reported by the speech recognizer."""

    NO_SPEECH = "no-speech"
    AUDIO_CAPTURE = "audio-capture"
    NOT_ALLOWED = "not-allowed"
    NETWORK = "network"
    UNSUPPORTED = "unsupported"
    OTHER = "other"


_ERROR_MESSAGES = {
    TranscriptErrorCode.NO_SPEECH: "음성이 감지되지 않았습니다.",
    TranscriptErrorCode.AUDIO_CAPTURE: "마이크를 찾을 수 없습니다.",
    TranscriptErrorCode.NOT_ALLOWED: "마이크 사용이 차단되었습니다.",
    TranscriptErrorCode.NETWORK: "네트워크 오류입니다.",
    TranscriptErrorCode.UNSUPPORTED: "이 브라우저에서는 음성 인식을 지원하지 않습니다.",
}


@dataclass(frozen=True)
class TranscriptError:
    """An error signalled by the transcript source."""

    code: TranscriptErrorCode
    detail: str = ""

    @classmethod
    def from_code(cls, raw_code: str) -> "TranscriptError":
        """Map a recognizer error code, keeping unknown codes as detail."""
        try:
            return cls(TranscriptErrorCode(raw_code))
        except ValueError:
            return cls(TranscriptErrorCode.OTHER, detail=raw_code)

    @property
    def is_fatal(self) -> bool:
        return self.code == TranscriptErrorCode.UNSUPPORTED

    @property
    def message(self) -> str:
        if self.code in _ERROR_MESSAGES:
            return _ERROR_MESSAGES[self.code]
        return f"오류: {self.detail or self.code.value}"
