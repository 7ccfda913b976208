from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from useradmin.schemas import CreateUserRequest, UpdateUserRequest, User
from useradmin.users_api import UsersAPIError


ALICE = {
    "id": 1,
    "username": "alice",
    "email": "a@x.com",
    "role": "admin",
    "created_at": "2024-01-01",
}


class FakeUsersAPI:
    """In-memory stand-in for the users API that records every call."""

    def __init__(self, users: Optional[List[Dict[str, object]]] = None) -> None:
        self.users: List[User] = [User.model_validate(item) for item in users or []]
        self.calls: List[tuple] = []
        self.list_error: Optional[UsersAPIError] = None
        self.save_error: Optional[UsersAPIError] = None
        self.delete_error: Optional[UsersAPIError] = None
        self._next_id = 100

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    def list_users(self) -> List[User]:
        self.calls.append(("list",))
        if self.list_error is not None:
            raise self.list_error
        return list(self.users)

    def create_user(self, request: CreateUserRequest) -> User:
        body = request.model_dump(mode="json")
        self.calls.append(("create", body))
        if self.save_error is not None:
            raise self.save_error
        self._next_id += 1
        user = User(
            id=self._next_id,
            username=body["username"],
            email=body["email"],
            role=body["role"],
            created_at="2024-02-01T10:00:00Z",
        )
        self.users.append(user)
        return user

    def update_user(self, user_id, request: UpdateUserRequest) -> User:
        body = request.model_dump(mode="json")
        self.calls.append(("update", user_id, body))
        if self.save_error is not None:
            raise self.save_error
        for index, existing in enumerate(self.users):
            if existing.id == user_id:
                updated = existing.model_copy(update={**body, "role": request.role})
                self.users[index] = updated
                return updated
        raise UsersAPIError("not found", status_code=404, message="User not found")

    def delete_user(self, user_id) -> None:
        self.calls.append(("delete", user_id))
        if self.delete_error is not None:
            raise self.delete_error
        self.users = [user for user in self.users if user.id != user_id]


@pytest.fixture
def fake_api() -> FakeUsersAPI:
    return FakeUsersAPI([ALICE])


@pytest.fixture
def empty_api() -> FakeUsersAPI:
    return FakeUsersAPI()
