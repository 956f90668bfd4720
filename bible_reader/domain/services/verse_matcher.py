"""Fuzzy matching of a live transcript against the current target verse."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..entities.verse import Verse
from .difficulty import DifficultyClassifier
from .similarity import similarity
from .text_normalizer import normalize_text

logger = logging.getLogger(__name__)


class RelaxationPolicy(str, Enum):
    """Which condition, if any, earns the relaxed thresholds.

    Only one axis is active per deployment so relaxations never compound.
    """

    NONE = "none"
    DIFFICULTY = "difficulty"
    PLATFORM = "platform"


@dataclass(frozen=True)
class MatchThresholds:
    """Tunable constants of the match rule."""

    lookback_factor: float = 1.8
    similarity_threshold: float = 60.0
    relaxed_similarity_threshold: float = 50.0
    min_length_ratio: float = 0.9
    relaxed_min_length_ratio: float = 0.8
    absolute_length_allowance: int = 5

    def __post_init__(self):
        if self.lookback_factor <= 1.0:
            raise ValueError("lookback_factor must exceed 1.0 so the whole verse fits in the window")

    @classmethod
    def from_settings(cls, settings) -> "MatchThresholds":
        return cls(
            lookback_factor=settings.lookback_factor,
            similarity_threshold=settings.similarity_threshold,
            relaxed_similarity_threshold=settings.relaxed_similarity_threshold,
            min_length_ratio=settings.min_length_ratio,
            relaxed_min_length_ratio=settings.relaxed_min_length_ratio,
            absolute_length_allowance=settings.absolute_length_allowance,
        )


@dataclass(frozen=True)
class MatchResult:
    """Outcome of comparing one transcript against one verse."""

    matched: bool
    similarity: float
    similarity_threshold: float
    compared_length: int
    target_length: int
    length_sufficient: bool


class VerseMatchEngine:
    """Decides whether the tail of a transcript reads the target verse.

    The engine keeps no state between calls. A verse counts as read when the
    similarity of the transcript's lookback window reaches the threshold and
    the window is long enough, either by ratio or by being within a few
    characters of the verse length.
    """

    def __init__(
        self,
        thresholds: Optional[MatchThresholds] = None,
        policy: RelaxationPolicy = RelaxationPolicy.DIFFICULTY,
        classifier: Optional[DifficultyClassifier] = None,
        constrained_platform: bool = False,
    ):
        self.thresholds = thresholds or MatchThresholds()
        self.policy = policy
        self.classifier = classifier or DifficultyClassifier()
        self.constrained_platform = constrained_platform

    def select_thresholds(self, verse_text: str) -> tuple[float, float]:
        """Return ``(similarity_threshold, min_length_ratio)`` for a verse."""
        t = self.thresholds
        if self.policy == RelaxationPolicy.PLATFORM and self.constrained_platform:
            return t.relaxed_similarity_threshold, t.relaxed_min_length_ratio
        if self.policy == RelaxationPolicy.DIFFICULTY and self.classifier.is_difficult(verse_text):
            return t.relaxed_similarity_threshold, t.min_length_ratio
        return t.similarity_threshold, t.min_length_ratio

    def evaluate(self, verse: Optional[Verse], transcript: str) -> Optional[MatchResult]:
        """Compare a transcript with the target verse.

        Returns None when there is nothing to compare: no verse, an empty
        transcript, or a verse that normalizes to nothing.
        """
        if verse is None or not transcript:
            return None

        target = normalize_text(verse.text)
        buffer = normalize_text(transcript)
        if not target:
            logger.warning(f"Verse {verse.citation} has no comparable text, skipping match")
            return None

        window_size = math.floor(len(target) * self.thresholds.lookback_factor)
        window = buffer[max(0, len(buffer) - window_size):]

        score = similarity(target, window)
        threshold, min_ratio = self.select_thresholds(verse.text)

        sufficient_by_ratio = len(window) >= len(target) * min_ratio
        sufficient_by_difference = (
            len(window) > 0
            and len(target) - len(window) <= self.thresholds.absolute_length_allowance
        )
        length_sufficient = sufficient_by_ratio or sufficient_by_difference
        matched = score >= threshold and length_sufficient

        logger.debug(
            f"Match {verse.citation}: similarity={score:.1f}/{threshold} "
            f"window={len(window)}/{len(target)} matched={matched}"
        )
        return MatchResult(
            matched=matched,
            similarity=score,
            similarity_threshold=threshold,
            compared_length=len(window),
            target_length=len(target),
            length_sufficient=length_sufficient,
        )

    def matches(self, verse: Optional[Verse], transcript: str) -> bool:
        result = self.evaluate(verse, transcript)
        return result is not None and result.matched
