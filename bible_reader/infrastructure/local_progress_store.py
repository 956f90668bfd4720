"""Local in-memory implementation of ProgressStore."""

from typing import Dict

from ..domain.entities.user_progress import UserProgress
from ..domain.interfaces.progress_store import ProgressStore


class LocalProgressStore(ProgressStore):
    """Local in-memory implementation of the ProgressStore protocol.

    Stores progress in a dictionary for testing and development purposes.
    """

    def __init__(self):
        self._progress: Dict[str, UserProgress] = {}

    async def load(self, user_id: str) -> UserProgress:
        """Retrieve a user's progress, or the zero value for an unknown user."""
        stored = self._progress.get(user_id)
        if stored is None:
            return UserProgress()
        return stored.model_copy(deep=True)

    async def save(self, user_id: str, progress: UserProgress) -> None:
        self._progress[user_id] = progress.model_copy(deep=True)

    def clear(self) -> None:
        """Clear all stored progress."""
        self._progress.clear()

    def get_all_progress(self) -> Dict[str, UserProgress]:
        return self._progress.copy()
