"""
Base model classes for matching engine data models.

Provides common fields and functionality shared across all models.
Record ids are plain strings; new ones are minted as ObjectId hex so
they sort by creation time in MongoDB and in memory alike.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    """Mint a fresh record id."""
    return str(ObjectId())


class TimestampMixin(BaseModel):
    """Mixin providing timestamp fields for models."""

    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")


class BaseDocument(TimestampMixin):
    """
    Base document model for record store collections.

    Provides common fields and configuration for all stored documents.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )

    id: Optional[str] = Field(default=None, alias="_id")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Optional[str]:
        """Accept ObjectId values read back from MongoDB."""
        if v is None or v == "":
            return None
        return str(v)

    def model_dump_mongo(self) -> dict[str, Any]:
        """Convert model to a store-compatible dictionary."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data


class EmbeddedModel(BaseModel):
    """
    Base model for embedded documents (subdocuments).

    Use this for models that are embedded within other documents
    rather than stored in their own collection.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )


def blank_if_none(v: Any) -> Any:
    """Store documents often carry null where an empty string is meant."""
    return "" if v is None else v


def stripped_text(v: Any) -> Any:
    """``blank_if_none`` plus surrounding whitespace removed from strings."""
    v = blank_if_none(v)
    return v.strip() if isinstance(v, str) else v
