"""Domain services for the bible reading coach."""

from .difficulty import DEFAULT_DIFFICULT_WORDS, DifficultyClassifier
from .progress_reconciler import (
    ProgressReconciliationService,
    ReconciliationResult,
    completed_chapters_in,
    reconcile_progress,
)
from .reading_service import ReadingService
from .resume import BookCompletion, ReadingSelection, suggest_resume_selection, summarize_book_completion
from .session_controller import InvalidSelectionError, SessionController, Transition
from .similarity import similarity
from .text_normalizer import normalize_text
from .verse_matcher import MatchResult, MatchThresholds, RelaxationPolicy, VerseMatchEngine

__all__ = [
    "DEFAULT_DIFFICULT_WORDS",
    "DifficultyClassifier",
    "ProgressReconciliationService",
    "ReconciliationResult",
    "completed_chapters_in",
    "reconcile_progress",
    "ReadingService",
    "BookCompletion",
    "ReadingSelection",
    "suggest_resume_selection",
    "summarize_book_completion",
    "InvalidSelectionError",
    "SessionController",
    "Transition",
    "similarity",
    "normalize_text",
    "MatchResult",
    "MatchThresholds",
    "RelaxationPolicy",
    "VerseMatchEngine",
]
