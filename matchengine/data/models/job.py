"""
Job posting data model.

Only the fields the matcher reads are modelled; anything else in the
stored document is ignored.
"""

from pydantic import Field, field_validator

from .base import BaseDocument, blank_if_none


class JobPosting(BaseDocument):
    """
    Immutable snapshot of a job posting as read for one match run.

    Skills and requirements are free text (comma or newline separated),
    the way recruiters type them.
    """

    title: str = ""
    company: str = ""
    description: str = ""
    requirements: str = ""
    skills: str = ""
    experience_level: str = Field(default="", alias="experienceLevel")

    @field_validator(
        "title", "company", "description", "requirements", "skills",
        "experience_level", mode="before",
    )
    @classmethod
    def coerce_text(cls, v):
        if isinstance(v, (list, tuple)):
            return ", ".join(str(item) for item in v if item is not None)
        return blank_if_none(v)

    @property
    def full_text(self) -> str:
        """Title, description, requirements and skills joined for keyword scoring."""
        return " ".join(
            part for part in (self.title, self.description, self.requirements, self.skills)
            if part
        )

    def snapshot(self) -> dict:
        """Compact copy stored alongside a match record."""
        return {
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "requirements": self.requirements,
            "skills": self.skills,
            "experienceLevel": self.experience_level,
        }
