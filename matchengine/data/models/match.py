"""
Match data models.

Defines the scored outcome of one resume-to-job comparison, the record
persisted for it, and the request/response shapes of the match endpoint.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from matchengine.utils.constants import CONSIDER_FROM, RECOMMEND_ABOVE

from .base import BaseDocument, EmbeddedModel, utcnow


class Recommendation(str, Enum):
    """Three-way classification derived from the numeric score."""

    RECOMMEND = "recommend"
    CONSIDER = "consider"
    NOT_RECOMMENDED = "not_recommended"

    @classmethod
    def from_score(cls, score: float) -> "Recommendation":
        """Bucket a 0-100 score."""
        if score > RECOMMEND_ABOVE:
            return cls.RECOMMEND
        if score >= CONSIDER_FROM:
            return cls.CONSIDER
        return cls.NOT_RECOMMENDED


class MatchSource(str, Enum):
    """Provenance of a match result."""

    AI = "ai"
    FALLBACK = "fallback"


class MatchResult(EmbeddedModel):
    """
    Outcome of one orchestration run. Never mutated after creation;
    re-matching produces a new result.
    """

    model_config = ConfigDict(frozen=True)

    score: int = Field(0, ge=0, le=100, alias="fitScore")
    matched_skills: list[str] = Field(default_factory=list, alias="matchedSkills")
    missing_skills: list[str] = Field(default_factory=list, alias="missingSkills")
    summary: str = ""
    recommendation: Recommendation = Recommendation.NOT_RECOMMENDED
    source: MatchSource = MatchSource.FALLBACK
    evidence: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    experience_match: str = Field(default="", alias="experienceMatch")

    @property
    def is_ai(self) -> bool:
        return self.source == MatchSource.AI.value


class MatchRecord(BaseDocument):
    """
    Persisted match result, with the snapshots it was computed from.

    Owned by the record store once written.
    """

    subject_id: str = Field(alias="userId")
    subject_name: str = Field(default="", alias="userName")
    job_id: str = Field(alias="jobId")
    job_title: str = Field(default="", alias="jobTitle")
    company_name: str = Field(default="", alias="companyName")
    source: MatchSource = MatchSource.FALLBACK

    fit_score: int = Field(0, alias="fitScore")
    matched_skills: list[str] = Field(default_factory=list, alias="matchedSkills")
    missing_skills: list[str] = Field(default_factory=list, alias="missingSkills")
    evidence: list[str] = Field(default_factory=list)

    job_snapshot: dict[str, Any] = Field(default_factory=dict, alias="jobSnapshot")
    resume_snapshot: dict[str, Any] = Field(default_factory=dict, alias="resumeSnapshot")
    raw_ai_response: Optional[Any] = Field(default=None, alias="rawAiResponse")
    match: MatchResult = Field(default_factory=MatchResult)
    terminal_log: str = Field(default="", alias="terminalLog")

    @classmethod
    def from_result(
        cls,
        result: MatchResult,
        *,
        subject_id: str,
        job_id: str,
        **fields: Any,
    ) -> "MatchRecord":
        """Build a record carrying the result's canonical fields."""
        return cls(
            subject_id=subject_id,
            job_id=job_id,
            source=result.source,
            fit_score=result.score,
            matched_skills=list(result.matched_skills),
            missing_skills=list(result.missing_skills),
            evidence=list(result.evidence),
            match=result,
            **fields,
        )


class MatchRequest(BaseModel):
    """Body of a match request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    subject_id: str = Field(alias="subjectId", min_length=1)
    job_id: str = Field(alias="jobId", min_length=1)
    fast_first: bool = Field(default=False, alias="fastFirst")

    @field_validator("subject_id", "job_id", mode="before")
    @classmethod
    def strip_ids(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class MatchResponse(BaseModel):
    """Body of a match response."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    success: bool = True
    match: MatchResult
    job_title: str = Field(default="", alias="jobTitle")
    company_name: str = Field(default="", alias="companyName")
    source: MatchSource
    cached: bool = False
    match_id: Optional[str] = Field(default=None, alias="matchId")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
