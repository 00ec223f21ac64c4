"""
Newsletter subscriber models.

Email format is checked in the service (400), not by the model.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SubscribeRequest(BaseModel):
    email: str | None = Field(default=None, max_length=320)
    source: str = Field(default="website", max_length=50)


class UnsubscribeRequest(BaseModel):
    email: str | None = Field(default=None, max_length=320)
