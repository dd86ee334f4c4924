"""Explicit payload validation returning a result instead of raising."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass
class ValidationResult(Generic[ModelT]):
    """Either a validated model (``value``) or the list of field errors."""

    value: ModelT | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.errors


def validate_payload(model: type[ModelT], payload: dict[str, Any]) -> ValidationResult[ModelT]:
    """Validate raw input against a schema, collecting every field error."""
    try:
        return ValidationResult(value=model.model_validate(payload))
    except ValidationError as exc:
        errors = [
            FieldError(
                field=".".join(str(part) for part in error["loc"]) or "__root__",
                message=error["msg"],
            )
            for error in exc.errors()
        ]
        return ValidationResult(errors=errors)
