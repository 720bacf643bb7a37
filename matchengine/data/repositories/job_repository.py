"""
Job posting repository.
"""

from matchengine.data.models.job import JobPosting

from .base import BaseRepository


class JobRepository(BaseRepository[JobPosting]):
    """Repository for job posting documents."""

    @property
    def collection_name(self) -> str:
        return "jobs"

    @property
    def model_class(self) -> type[JobPosting]:
        return JobPosting
