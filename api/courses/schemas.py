"""
Course request models.

Fields are snake_case in Python and camelCase on the wire and in storage;
`model_dump(by_alias=True)` gives the stored document shape.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.fields import COURSE_BADGES, COURSE_CATEGORIES, COURSE_LEVELS
from core.forms import split_tags

Category = Literal[COURSE_CATEGORIES]
Level = Literal[COURSE_LEVELS]
Badge = Literal[COURSE_BADGES]
IconType = Literal["cloud", "code", "chart", "default"]


class CourseCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: Category
    instructor: str = Field(..., min_length=1)
    original_price: float = Field(..., ge=0, alias="originalPrice")
    discounted_price: float | None = Field(default=None, ge=0, alias="discountedPrice")
    rating: float = Field(default=0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0, alias="reviewCount")
    duration: str = Field(..., min_length=1)
    total_hours: float = Field(default=0, ge=0, alias="totalHours")
    lectures: int = Field(default=0, ge=0)
    students: int = Field(default=0, ge=0)
    badge: Badge | None = None
    icon: str | None = None
    icon_type: IconType = Field(default="default", alias="iconType")
    level: Level = "beginner"
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = Field(default=False, alias="isFeatured")
    is_active: bool = Field(default=True, alias="isActive")

    @field_validator("tags", mode="before")
    @classmethod
    def tags_from_csv(cls, value):
        return split_tags(value)


class CourseUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: Category | None = None
    instructor: str | None = Field(default=None, min_length=1)
    original_price: float | None = Field(default=None, ge=0, alias="originalPrice")
    discounted_price: float | None = Field(default=None, ge=0, alias="discountedPrice")
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0, alias="reviewCount")
    duration: str | None = Field(default=None, min_length=1)
    total_hours: float | None = Field(default=None, ge=0, alias="totalHours")
    lectures: int | None = Field(default=None, ge=0)
    students: int | None = Field(default=None, ge=0)
    badge: Badge | None = None
    icon: str | None = None
    icon_type: IconType | None = Field(default=None, alias="iconType")
    level: Level | None = None
    tags: list[str] | None = None
    is_featured: bool | None = Field(default=None, alias="isFeatured")
    is_active: bool | None = Field(default=None, alias="isActive")

    @field_validator("tags", mode="before")
    @classmethod
    def tags_from_csv(cls, value):
        return split_tags(value)
