"""
Helpers for multipart endpoints that validate text fields with pydantic.
"""

from __future__ import annotations

from typing import Any, TypeVar

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def text_fields(form) -> dict[str, str]:
    """
    Plain text parts of a submitted form; file parts and blank values are dropped.
    """
    out: dict[str, str] = {}
    for key, value in form.multi_items():
        if isinstance(value, str) and value.strip():
            out[key] = value.strip()
    return out


def parse_model(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """
    Validate `data` against `model`, reporting failures the same way FastAPI
    reports body validation errors (422).
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


def split_tags(value):
    """
    Accept tags as a comma-separated form value or as a list.
    """
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value
