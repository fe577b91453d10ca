# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Form validation for the signup and login pages.

``validate`` never raises on bad input: it returns ``Ok(form)`` with the parsed
model or ``Invalid(reason)`` carrying the first human readable problem, in
field declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    reason: str


Result = Union[Ok[T], Invalid]


def _bare_address(value: Any) -> Any:
    # EmailStr would accept "Name <addr>" and strip padding; only a bare address is valid here.
    if isinstance(value, str) and (value != value.strip() or "<" in value or ">" in value):
        raise ValueError("not a bare email address")
    return value


class SignupForm(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value: Any) -> Any:
        return _bare_address(value)


class LoginForm(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value: Any) -> Any:
        return _bare_address(value)


SCHEMAS: Dict[str, Type[BaseModel]] = {
    "signup": SignupForm,
    "login": LoginForm,
}


def _message(error: Dict[str, Any], fields: Mapping[str, Any]) -> str:
    loc = error.get("loc") or ()
    field = str(loc[0]) if loc else "value"
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}

    if kind == "missing":
        return f'"{field}" is required'
    if fields.get(field) == "":
        return f'"{field}" is not allowed to be empty'
    if kind == "string_type":
        return f'"{field}" must be a string'
    if kind == "string_too_short":
        return f'"{field}" length must be at least {ctx.get("min_length")} characters long'
    if kind == "string_too_long":
        return f'"{field}" length must be less than or equal to {ctx.get("max_length")} characters long'
    if field == "email":
        return '"email" must be a valid email'
    return f'"{field}" {error.get("msg", "is invalid")}'


def validate(schema: str, fields: Mapping[str, Any]) -> Result:
    """Check ``fields`` against the named schema ("signup" or "login")."""
    model = SCHEMAS.get(schema)
    if model is None:
        raise KeyError(f"Unknown validation schema: {schema!r}")
    data = {name: fields[name] for name in model.model_fields if name in fields}
    try:
        return Ok(model(**data))
    except ValidationError as exc:
        errors = exc.errors()
        return Invalid(_message(errors[0], data) if errors else "Invalid input")
