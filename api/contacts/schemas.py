"""
Contact message models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from auth.schemas import EMAIL_PATTERN


class ContactCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    full_name: str = Field(..., min_length=3, max_length=100, alias="fullName")
    email: str = Field(..., min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    message: str = Field(..., min_length=10, max_length=1000)
