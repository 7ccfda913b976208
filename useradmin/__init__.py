"""Administration console for the accounts held by a remote users API."""

from __future__ import annotations

from typing import Any

from .controller import InvalidTransitionError, UserManagementController
from .users_api import UsersAPI, UsersAPIError


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the web console application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "InvalidTransitionError",
    "UserManagementController",
    "UsersAPI",
    "UsersAPIError",
    "create_app",
]
