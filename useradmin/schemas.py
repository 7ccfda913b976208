"""Wire schemas exchanged with the remote users API."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"

    @property
    def label(self) -> str:
        return "Administrator" if self is Role.ADMIN else "User"


class User(BaseModel):
    """A user account as reported by the users API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Union[int, str]
    username: str
    email: str
    role: Role = Role.USER
    created_at: Optional[datetime] = None

    @field_validator("created_at", mode="wrap")
    @classmethod
    def _lenient_created_at(
        cls, value: Any, handler: ValidatorFunctionWrapHandler
    ) -> Optional[datetime]:
        # A bad timestamp only blanks the Created column; the record stays usable.
        if isinstance(value, str) and not value.strip():
            return None
        try:
            return handler(value)
        except ValidationError:
            return None

    @property
    def created_date(self) -> str:
        if self.created_at is None:
            return ""
        return self.created_at.strftime("%Y-%m-%d")


class CreateUserRequest(BaseModel):
    """Body of ``POST /users``."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., description="Login name, unique on the server")
    email: str
    password: str
    role: Role = Role.USER


class UpdateUserRequest(BaseModel):
    """Body of ``PUT /users/{id}``. Passwords are never changed through this request."""

    model_config = ConfigDict(extra="forbid")

    username: str
    email: str
    role: Role = Role.USER


__all__ = ["CreateUserRequest", "Role", "UpdateUserRequest", "User"]
