"""
Candidate profile repository.
"""

from typing import Optional

from matchengine.data.models.candidate import CandidateProfile

from .base import BaseRepository


class CandidateRepository(BaseRepository[CandidateProfile]):
    """Repository for candidate profile documents."""

    @property
    def collection_name(self) -> str:
        return "user_profiles"

    @property
    def model_class(self) -> type[CandidateProfile]:
        return CandidateProfile

    async def get_by_subject(self, subject_id: str) -> Optional[CandidateProfile]:
        """Get the profile owned by a user."""
        if not subject_id:
            return None
        return await self.find_one({"userId": subject_id})
