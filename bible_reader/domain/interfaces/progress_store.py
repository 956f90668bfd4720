"""Progress store protocol."""

from typing import Protocol, runtime_checkable

from ..entities.user_progress import UserProgress


@runtime_checkable
class ProgressStore(Protocol):
    """Protocol for durable user progress storage.

    This interface can be implemented by different storage backends
    (in-memory, DynamoDB, etc.).
    """

    async def load(self, user_id: str) -> UserProgress:
        """Load a user's progress.

        Args:
            user_id: The user identifier.

        Returns:
            UserProgress: The stored progress, or the zero value if the user
            has none yet. Never raises for an unknown user.
        """
        ...

    async def save(self, user_id: str, progress: UserProgress) -> None:
        """Upsert a user's progress.

        Args:
            user_id: The user identifier.
            progress: The progress to store.

        Raises:
            Exception: If the backend write fails.
        """
        ...
