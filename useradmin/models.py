"""Domain models for the user administration console."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .schemas import CreateUserRequest, Role, UpdateUserRequest, User


DRAFT_FIELDS = ("username", "email", "password", "role")


class ViewMode(str, Enum):
    """Screens the console can show."""

    LOADING = "loading"
    LISTING = "listing"
    EDITING = "editing"


@dataclass(frozen=True)
class ViewState:
    """The active screen and, while editing, the user being edited."""

    mode: ViewMode
    target: Optional[User] = None

    @classmethod
    def loading(cls) -> "ViewState":
        return cls(ViewMode.LOADING)

    @classmethod
    def listing(cls) -> "ViewState":
        return cls(ViewMode.LISTING)

    @classmethod
    def editing(cls, target: Optional[User] = None) -> "ViewState":
        return cls(ViewMode.EDITING, target)

    @property
    def is_creating(self) -> bool:
        return self.mode is ViewMode.EDITING and self.target is None

    @property
    def is_updating(self) -> bool:
        return self.mode is ViewMode.EDITING and self.target is not None


@dataclass(frozen=True)
class Draft:
    """Working copy of the user form."""

    username: str = ""
    email: str = ""
    password: str = ""
    role: Role = Role.USER

    @classmethod
    def blank(cls) -> "Draft":
        return cls()

    @classmethod
    def from_user(cls, user: User) -> "Draft":
        """Populate a draft from ``user``; the password is always left blank."""

        return cls(username=user.username, email=user.email, password="", role=user.role)

    def merge(self, name: str, value: str) -> "Draft":
        """Return a copy of the draft with ``name`` set to ``value``."""

        if name not in DRAFT_FIELDS:
            raise ValueError(f"Unknown form field '{name}'")
        if name == "role":
            try:
                return replace(self, role=Role(value))
            except ValueError as exc:
                raise ValueError(f"Unknown role '{value}'") from exc
        return replace(self, **{name: "" if value is None else str(value)})

    def to_create_request(self) -> CreateUserRequest:
        return CreateUserRequest(
            username=self.username,
            email=self.email,
            password=self.password,
            role=self.role,
        )

    def to_update_request(self) -> UpdateUserRequest:
        return UpdateUserRequest(username=self.username, email=self.email, role=self.role)


__all__ = ["DRAFT_FIELDS", "Draft", "ViewMode", "ViewState"]
