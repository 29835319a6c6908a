"""Input validation: field-level error collection and the registration form."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .domain.profile import normalize_identifier


def default_errors_factory() -> dict[str, list[str]]:
    return {}


@dataclass
class ValidationResult:
    """Collects field-level validation errors.

    Usage::

        result = ValidationResult.success()
        result = ValidationResult.failure({"username": ["is required"]})
    """

    errors: dict[str, list[str]] = field(default_factory=default_errors_factory)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    # ── Factory methods ──────────────────────────────────────────

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def failure(cls, errors: dict[str, list[str]]) -> ValidationResult:
        return cls(errors=errors)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> ValidationResult:
        """Convert a pydantic ``ValidationError`` into field-level errors."""
        result = cls()
        for error in exc.errors():
            loc = ".".join(str(p) for p in error.get("loc", ())) or "__root__"
            result.add_error(loc, error.get("msg", "validation error"))
        return result

    # ── Merging ──────────────────────────────────────────────────

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Merge another result into this one, combining all errors."""
        merged = dict(self.errors)
        for field_name, messages in other.errors.items():
            merged[field_name] = merged.get(field_name, []) + messages
        return ValidationResult(errors=merged)

    def add_error(self, field_name: str, message: str) -> None:
        """Add a single error for *field_name*."""
        self.errors.setdefault(field_name, []).append(message)

    def __bool__(self) -> bool:
        return self.is_valid


# ═══════════════════════════════════════════════════════════════
# REGISTRATION
# ═══════════════════════════════════════════════════════════════

PASSWORD_MISMATCH_MESSAGE = "Passwords do not match"


class RegistrationForm(BaseModel):
    """Registration input after normalisation.

    Email and username are trimmed and lower-cased, the full name and phone
    are trimmed. Passwords are kept verbatim.
    """

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=8)
    full_name: str = Field(min_length=1)
    username: str = Field(min_length=3, max_length=30)
    phone: str | None = None

    @field_validator("email", "username", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_identifier(value)
        return value

    @field_validator("full_name", "phone", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("phone", mode="after")
    @classmethod
    def _empty_phone_is_none(cls, value: str | None) -> str | None:
        return value or None


def validate_registration(data: dict[str, Any]) -> tuple[RegistrationForm | None, ValidationResult]:
    """Validate registration input, collecting every violated field.

    The password confirmation is checked even when other fields fail, so
    the caller sees all problems at once.
    """
    form: RegistrationForm | None = None
    try:
        form = RegistrationForm.model_validate(data)
        result = ValidationResult.success()
    except PydanticValidationError as exc:
        result = ValidationResult.from_pydantic(exc)

    if data.get("password") != data.get("confirm_password"):
        result.add_error("confirm_password", PASSWORD_MISMATCH_MESSAGE)
        form = None

    return form, result


__all__: list[str] = [
    "PASSWORD_MISMATCH_MESSAGE",
    "RegistrationForm",
    "ValidationResult",
    "validate_registration",
]
