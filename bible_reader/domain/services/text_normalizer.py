"""Text normalization applied to verse text and transcripts before comparison."""

import re

# Punctuation stripped before comparison, including the full-width space.
_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()?　]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation and remove all whitespace.

    Idempotent: ``normalize_text(normalize_text(s)) == normalize_text(s)``.
    """
    lowered = text.lower()
    without_punctuation = _PUNCTUATION.sub("", lowered)
    return _WHITESPACE.sub("", without_punctuation)
