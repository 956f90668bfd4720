"""DynamoDB implementation of ProgressStore."""

from datetime import datetime
from typing import Any, Dict

import aioboto3

from ..domain.entities.user_progress import SessionRecord, UserProgress
from ..domain.interfaces.progress_store import ProgressStore


class DynamoDBProgressStore(ProgressStore):
    """DynamoDB store for per-user reading progress, keyed by ``user_id``."""

    def __init__(self, table_name: str, region_name: str = "us-east-1"):
        """Initialize the DynamoDB progress store.

        Args:
            table_name: The name of the DynamoDB table.
            region_name: AWS region name (default: us-east-1).
        """
        self.table_name = table_name
        self.region_name = region_name
        self._session = aioboto3.Session()

    async def load(self, user_id: str) -> UserProgress:
        """Retrieve a user's progress from DynamoDB.

        Args:
            user_id: The user identifier.

        Returns:
            UserProgress: The stored progress, or the zero value when the
            user has no item yet.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"user_id": user_id})

            if "Item" not in response:
                return UserProgress()

            return self._item_to_progress(response["Item"])

    async def save(self, user_id: str, progress: UserProgress) -> None:
        """Upsert a user's progress in DynamoDB.

        Raises:
            Exception: If the put operation fails.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._progress_to_item(user_id, progress))

    def _progress_to_item(self, user_id: str, progress: UserProgress) -> Dict[str, Any]:
        """Convert a UserProgress entity to a DynamoDB item.

        Completed chapters are stored as a sorted list since DynamoDB
        rejects empty string sets.
        """
        item = {
            "user_id": user_id,
            "last_read_book": progress.last_read_book,
            "last_read_chapter": progress.last_read_chapter,
            "last_read_verse": progress.last_read_verse,
            "completed_chapters": sorted(progress.completed_chapters),
            "history": [
                {
                    "date": record.date.isoformat(),
                    "book": record.book,
                    "start_chapter": record.start_chapter,
                    "start_verse": record.start_verse,
                    "end_chapter": record.end_chapter,
                    "end_verse": record.end_verse,
                    "verses_read": record.verses_read,
                }
                for record in progress.history
            ],
        }
        if progress.last_progress_update_date is not None:
            item["last_progress_update_date"] = progress.last_progress_update_date.isoformat()
        return item

    def _item_to_progress(self, item: Dict[str, Any]) -> UserProgress:
        """Convert a DynamoDB item to a UserProgress entity.

        Numbers come back from DynamoDB as Decimal and are cast to int.
        """
        history = [
            SessionRecord(
                date=datetime.fromisoformat(record["date"]),
                book=record["book"],
                start_chapter=int(record["start_chapter"]),
                start_verse=int(record["start_verse"]),
                end_chapter=int(record["end_chapter"]),
                end_verse=int(record["end_verse"]),
                verses_read=int(record["verses_read"]),
            )
            for record in item.get("history", [])
        ]

        updated = item.get("last_progress_update_date")
        return UserProgress(
            last_read_book=item.get("last_read_book", ""),
            last_read_chapter=int(item.get("last_read_chapter", 0)),
            last_read_verse=int(item.get("last_read_verse", 0)),
            completed_chapters=set(item.get("completed_chapters", [])),
            history=history,
            last_progress_update_date=datetime.fromisoformat(updated) if updated else None,
        )
