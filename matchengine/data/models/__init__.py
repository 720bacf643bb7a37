"""
Data models for the matching engine.

All models use Pydantic v2 and validate store documents at the boundary.
"""

from .base import BaseDocument, EmbeddedModel, TimestampMixin, new_record_id
from .candidate import (
    CandidateProfile,
    ExperienceEntry,
    PersonalInfo,
    ProfessionalBio,
    ProfileSkills,
    ResumeReference,
    User,
    is_absolute_url,
)
from .job import JobPosting
from .match import (
    MatchRecord,
    MatchRequest,
    MatchResponse,
    MatchResult,
    MatchSource,
    Recommendation,
)

__all__ = [
    # Base
    "BaseDocument",
    "EmbeddedModel",
    "TimestampMixin",
    "new_record_id",
    # Candidate
    "CandidateProfile",
    "ExperienceEntry",
    "PersonalInfo",
    "ProfessionalBio",
    "ProfileSkills",
    "ResumeReference",
    "User",
    "is_absolute_url",
    # Job
    "JobPosting",
    # Match
    "MatchRecord",
    "MatchRequest",
    "MatchResponse",
    "MatchResult",
    "MatchSource",
    "Recommendation",
]
