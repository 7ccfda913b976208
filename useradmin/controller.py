"""State machine behind the user administration screen."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Mapping, Optional, Protocol, Sequence, Tuple

from .models import Draft, ViewMode, ViewState
from .schemas import CreateUserRequest, UpdateUserRequest, User
from .users_api import UserId, UsersAPIError


logger = logging.getLogger("useradmin.controller")

SAVE_ERROR_FALLBACK = "Error saving user"

Confirm = Callable[[UserId], bool]


class UsersBackend(Protocol):
    def list_users(self) -> Sequence[User]: ...

    def create_user(self, request: CreateUserRequest) -> Optional[User]: ...

    def update_user(self, user_id: UserId, request: UpdateUserRequest) -> Optional[User]: ...

    def delete_user(self, user_id: UserId) -> None: ...


class InvalidTransitionError(RuntimeError):
    """Raised when an action is not available from the current screen."""

    def __init__(self, action: str, mode: ViewMode, *, busy: bool = False) -> None:
        reason = "a request is in progress" if busy else mode.value
        super().__init__(f"Cannot {action} while {reason}")
        self.action = action
        self.mode = mode
        self.busy = busy


def _decline(_user_id: UserId) -> bool:
    return False


class UserManagementController:
    """Drive the list / form screens and keep the cached collection in sync.

    The controller starts in the loading state. The cached collection is
    only ever replaced by a successful fetch; mutations never patch it
    locally. Deletions ask ``confirm`` first, which declines by default so a
    controller without a confirmation step can never delete anything.

    Only one action runs at a time. An action started while a save or delete
    is still waiting on the users API raises ``InvalidTransitionError`` with
    ``busy`` set instead of issuing a second request.
    """

    def __init__(self, api: UsersBackend, *, confirm: Optional[Confirm] = None) -> None:
        self._api = api
        self._confirm: Confirm = confirm or _decline
        self._users: Tuple[User, ...] = ()
        self._view = ViewState.loading()
        self._draft: Optional[Draft] = None
        self._message: Optional[str] = None
        self._lock = threading.RLock()

    @property
    def users(self) -> Tuple[User, ...]:
        return self._users

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def mode(self) -> ViewMode:
        return self._view.mode

    @property
    def loading(self) -> bool:
        return self._view.mode is ViewMode.LOADING

    @property
    def draft(self) -> Optional[Draft]:
        return self._draft

    @property
    def message(self) -> Optional[str]:
        """The alert raised by the last failed save, if any."""

        return self._message

    def find_user(self, user_id: UserId) -> Optional[User]:
        key = str(user_id)
        for user in self._users:
            if str(user.id) == key:
                return user
        return None

    # Collection sync

    def refresh(self) -> bool:
        """Refetch the collection, keeping the cached copy if the fetch fails."""

        with self._lock:
            try:
                users = self._api.list_users()
            except UsersAPIError as exc:
                logger.warning("Error loading users: %s", exc)
                succeeded = False
            else:
                self._users = tuple(users)
                succeeded = True

            if self._view.mode is ViewMode.LOADING:
                self._view = ViewState.listing()
            return succeeded

    def remove(self, user_id: UserId, *, confirm: Optional[Confirm] = None) -> bool:
        """Delete ``user_id`` after confirmation; return whether it was deleted."""

        with self._exclusive(ViewMode.LISTING, "delete a user"):
            ask = confirm or self._confirm
            if not ask(user_id):
                logger.debug("Deletion of user %s was not confirmed", user_id)
                return False

            try:
                self._api.delete_user(user_id)
            except UsersAPIError as exc:
                logger.warning("Error deleting user %s: %s", user_id, exc)
                return False

            logger.info("Deleted user %s", user_id)
            self.refresh()
            return True

    # View transitions

    def begin_create(self) -> Draft:
        with self._exclusive(ViewMode.LISTING, "create a user"):
            self._draft = Draft.blank()
            self._message = None
            self._view = ViewState.editing(None)
            return self._draft

    def begin_edit(self, user: User) -> Draft:
        with self._exclusive(ViewMode.LISTING, "edit a user"):
            self._draft = Draft.from_user(user)
            self._message = None
            self._view = ViewState.editing(user)
            return self._draft

    def cancel(self) -> None:
        with self._exclusive(ViewMode.EDITING, "cancel the form"):
            self._leave_form()

    # Form state

    def set_field(self, name: str, value: str) -> Draft:
        return self.update_fields({name: value})

    def update_fields(self, values: Mapping[str, str]) -> Draft:
        """Merge several form fields at once.

        Nothing is applied unless every field is accepted, so a rejected value
        leaves the draft exactly as it was.
        """

        with self._exclusive(ViewMode.EDITING, "change the form"):
            draft = self._current_draft("change the form")
            for name, value in values.items():
                draft = draft.merge(name, value)
            self._draft = draft
            return draft

    def submit(self) -> bool:
        """Send the draft as an update or a create, depending on the target."""

        with self._exclusive(ViewMode.EDITING, "submit the form"):
            draft = self._current_draft("submit the form")
            target = self._view.target

            try:
                if target is not None:
                    saved = self._api.update_user(target.id, draft.to_update_request())
                else:
                    saved = self._api.create_user(draft.to_create_request())
            except UsersAPIError as exc:
                logger.warning("Error saving user: %s", exc)
                self._message = exc.message or SAVE_ERROR_FALLBACK
                return False

            if saved is not None:
                logger.info("Saved user %s", saved.id)
            elif target is not None:
                logger.info("Saved user %s", target.id)
            else:
                logger.info("Saved user '%s'", draft.username)
            self._leave_form()
            self.refresh()
            return True

    def _leave_form(self) -> None:
        self._draft = None
        self._message = None
        self._view = ViewState.listing()

    def _current_draft(self, action: str) -> Draft:
        if self._draft is None:
            raise InvalidTransitionError(action, self._view.mode)
        return self._draft

    @contextmanager
    def _exclusive(self, mode: ViewMode, action: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise InvalidTransitionError(action, self._view.mode, busy=True)
        try:
            if self._view.mode is not mode:
                raise InvalidTransitionError(action, self._view.mode)
            yield
        finally:
            self._lock.release()


__all__ = [
    "Confirm",
    "InvalidTransitionError",
    "SAVE_ERROR_FALLBACK",
    "UserManagementController",
    "UsersBackend",
]
