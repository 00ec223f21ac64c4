"""
Blog request models.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.fields import BLOG_BADGES, COURSE_CATEGORIES
from core.forms import split_tags

Category = Literal[COURSE_CATEGORIES]
Badge = Literal[BLOG_BADGES]
READ_TIME_PATTERN = r"^\d+\s*min$"


def _check_tags(tags: list[str] | None) -> list[str] | None:
    for tag in tags or []:
        if not 1 <= len(tag) <= 20:
            raise ValueError("Tags must be between 1 and 20 characters")
    return tags


class BlogCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=50, max_length=5000)
    author: str = Field(..., min_length=1, max_length=100)
    category: Category
    read_time: str = Field(..., pattern=READ_TIME_PATTERN, alias="readTime")
    badge: Badge | None = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool = Field(default=True, alias="isPublished")

    @field_validator("tags", mode="before")
    @classmethod
    def tags_from_csv(cls, value):
        return split_tags(value)

    @field_validator("tags")
    @classmethod
    def tag_lengths(cls, value):
        return _check_tags(value)


class BlogUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=50, max_length=5000)
    author: str | None = Field(default=None, min_length=1, max_length=100)
    category: Category | None = None
    read_time: str | None = Field(default=None, pattern=READ_TIME_PATTERN, alias="readTime")
    badge: Badge | None = None
    tags: list[str] | None = None
    is_published: bool | None = Field(default=None, alias="isPublished")

    @field_validator("tags", mode="before")
    @classmethod
    def tags_from_csv(cls, value):
        return split_tags(value)

    @field_validator("tags")
    @classmethod
    def tag_lengths(cls, value):
        return _check_tags(value)
