"""
Match result repository.

Records are append-only: re-matching writes a new record rather than
updating the previous one.
"""

from matchengine.data.models.match import MatchRecord
from matchengine.utils.constants import RESULT_LIST_LIMIT
from matchengine.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class MatchRepository(BaseRepository[MatchRecord]):
    """Repository for persisted match results."""

    @property
    def collection_name(self) -> str:
        return "match_results"

    @property
    def model_class(self) -> type[MatchRecord]:
        return MatchRecord

    async def list_for_subject(
        self, subject_id: str, limit: int = RESULT_LIST_LIMIT
    ) -> list[MatchRecord]:
        """A user's records, newest first."""
        return await self.find({"userId": subject_id}, limit=limit)
