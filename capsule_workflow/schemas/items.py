"""Relationship item Pydantic schemas: validated inputs for workflow operations."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from capsule_workflow.domain.items import ItemCategory, ItemPriority, Perspective


def _reject_blank(v: str, name: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError(f"{name} cannot be empty or whitespace-only")
    return stripped


class CreateItemInput(BaseModel):
    """Fields a party supplies when adding an item to a capsule."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    category: ItemCategory = ItemCategory.GENERAL
    estimated_cost: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    scheduled_date: date | None = None
    location: str | None = None
    priority: ItemPriority | None = None
    deadline: datetime | None = None

    @field_validator("title")
    @classmethod
    def reject_whitespace_title(cls, v: str) -> str:
        """Reject empty or whitespace-only titles."""
        return _reject_blank(v, "Title")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class UpdateItemInput(BaseModel):
    """Partial edit of an item's details. Only fields that are set get written."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    category: ItemCategory | None = None
    estimated_cost: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    scheduled_date: date | None = None
    location: str | None = None
    priority: ItemPriority | None = None
    deadline: datetime | None = None

    @field_validator("title")
    @classmethod
    def reject_whitespace_title(cls, v: str | None) -> str | None:
        if v is None:
            raise ValueError("Title cannot be cleared")
        return _reject_blank(v, "Title")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v

    def changed_columns(self) -> dict:
        """Columns explicitly set by the caller, with enum values unwrapped."""
        columns = self.model_dump(exclude_unset=True)
        # Non-nullable columns: an explicit None means "leave as is"
        for key in ("category", "priority", "currency"):
            if key in columns and columns[key] is None:
                del columns[key]
        for key in ("category", "priority"):
            if key in columns:
                columns[key] = columns[key].value
        return columns


class PerspectiveInput(BaseModel):
    """One party's four-part perspective. All four fields are required."""

    feeling: str = Field(..., min_length=1)
    need: str = Field(..., min_length=1)
    willing: str = Field(..., min_length=1)
    compromise: str = Field(..., min_length=1)

    @field_validator("feeling", "need", "willing", "compromise")
    @classmethod
    def reject_whitespace(cls, v: str, info) -> str:
        return _reject_blank(v, info.field_name.capitalize())

    def to_domain(self) -> Perspective:
        return Perspective(
            feeling=self.feeling,
            need=self.need,
            willing=self.willing,
            compromise=self.compromise,
        )


class CommentInput(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def reject_whitespace_content(cls, v: str) -> str:
        return _reject_blank(v, "Comment")
