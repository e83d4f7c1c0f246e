"""
Turn pydantic validation failures into the portal's ValidationError.
"""
from typing import Type, TypeVar

import pydantic
from pydantic import BaseModel

from backend.utils.errors import ValidationError
from models.fitness import with_changes

ModelT = TypeVar("ModelT", bound=BaseModel)


def _describe(exc: pydantic.ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def build(model_class: Type[ModelT], **data) -> ModelT:
    try:
        return model_class.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(_describe(exc)) from exc


def update(model: ModelT, **changes) -> ModelT:
    try:
        return with_changes(model, **changes)
    except pydantic.ValidationError as exc:
        raise ValidationError(_describe(exc)) from exc


def require_fields(**fields) -> None:
    """Reject blank required form fields."""
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
