"""
Candidate data models.

A candidate is split across two records: the account (``User``), which may
still carry a legacy resume reference, and the ``CandidateProfile`` with
structured skills, experience and the current resume reference.
"""

import re
from typing import Optional

from pydantic import Field, field_validator

from .base import BaseDocument, EmbeddedModel, blank_if_none, stripped_text


_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute_url(value: Optional[str]) -> bool:
    return bool(value) and bool(_HTTP_RE.match(value))


class ResumeReference(EmbeddedModel):
    """
    Where a candidate's resume lives.

    ``file_url`` may be an absolute URL or, for older uploads, a bare
    storage path. ``public_id`` is the blob store's object id.
    """

    file_url: str = Field(default="", alias="fileUrl")
    secure_url: str = Field(default="", alias="secureUrl")
    public_id: str = Field(default="", alias="publicId")
    file_name: str = Field(default="", alias="fileName")

    @field_validator("file_url", "secure_url", "public_id", "file_name", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return stripped_text(v)

    @property
    def reference(self) -> str:
        """The stored location string, preferring ``file_url``."""
        return self.file_url or self.secure_url

    @property
    def absolute_url(self) -> str:
        ref = self.reference
        return ref if is_absolute_url(ref) else ""

    @property
    def is_empty(self) -> bool:
        return not (self.reference or self.public_id)


class PersonalInfo(EmbeddedModel):
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return blank_if_none(v)


class ProfessionalBio(EmbeddedModel):
    """Free-text self description; ``experience`` is e.g. "5 years"."""

    bio: str = ""
    current_position: str = Field(default="", alias="currentPosition")
    experience: str = ""

    @field_validator("bio", "current_position", "experience", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return blank_if_none(v)


class ProfileSkills(EmbeddedModel):
    """Technical and soft skills are comma-separated free text."""

    technical_skills: str = Field(default="", alias="technicalSkills")
    soft_skills: str = Field(default="", alias="softSkills")
    languages: list[str] = Field(default_factory=list)

    @field_validator("technical_skills", "soft_skills", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if isinstance(v, (list, tuple)):
            return ", ".join(str(item) for item in v if item is not None)
        return blank_if_none(v)

    @field_validator("languages", mode="before")
    @classmethod
    def coerce_languages(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return [str(item) for item in v if item]


class ExperienceEntry(EmbeddedModel):
    company: str = ""
    position: str = ""
    description: str = ""
    technologies: list[str] = Field(default_factory=list)

    @field_validator("company", "position", "description", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return blank_if_none(v)

    @field_validator("technologies", mode="before")
    @classmethod
    def coerce_technologies(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return [str(item) for item in v if item]


class CandidateProfile(BaseDocument):
    """
    Structured candidate profile, keyed by the owning user's id.

    Experience entries are stored in the order they were added, so the
    last ones are the most recent.
    """

    user_id: str = Field(alias="userId")
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo, alias="personalInfo")
    professional_bio: ProfessionalBio = Field(
        default_factory=ProfessionalBio, alias="professionalBio"
    )
    skills: ProfileSkills = Field(default_factory=ProfileSkills)
    resume: ResumeReference = Field(default_factory=ResumeReference)
    experience_history: list[ExperienceEntry] = Field(
        default_factory=list, alias="experienceHistory"
    )

    @field_validator("user_id", mode="before")
    @classmethod
    def stringify_user_id(cls, v):
        return str(v) if v is not None else v

    @field_validator("personal_info", "professional_bio", "skills", "resume", mode="before")
    @classmethod
    def empty_section(cls, v):
        return {} if v is None else v

    @field_validator("experience_history", mode="before")
    @classmethod
    def empty_history(cls, v):
        return [] if v is None else v

    @property
    def display_name(self) -> str:
        return " ".join(
            part for part in (self.personal_info.first_name, self.personal_info.last_name)
            if part
        )

    @property
    def experience_text(self) -> str:
        """Where a stated number of years is looked for."""
        return self.professional_bio.experience or self.professional_bio.bio


class User(BaseDocument):
    """Account record; only the legacy resume fields matter here."""

    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    resume_url: str = Field(default="", alias="resumeUrl")
    resume_public_id: str = Field(default="", alias="resumePublicId")

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return blank_if_none(v)

    @field_validator("resume_url", "resume_public_id", mode="before")
    @classmethod
    def coerce_reference(cls, v):
        return stripped_text(v)

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def resume_reference(self) -> ResumeReference:
        return ResumeReference(file_url=self.resume_url, public_id=self.resume_public_id)
