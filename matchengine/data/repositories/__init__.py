"""
Data access repositories for the matching engine.

Repositories validate stored documents into models at the boundary.
"""

from .base import BaseRepository
from .candidate_repository import CandidateRepository
from .job_repository import JobRepository
from .match_repository import MatchRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CandidateRepository",
    "JobRepository",
    "MatchRepository",
    "UserRepository",
]
