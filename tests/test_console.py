from __future__ import annotations

from typing import Iterable

from conftest import ALICE, FakeUsersAPI
from useradmin import console as console_module
from useradmin.console import confirm_deletion, run_console
from useradmin.controller import UserManagementController
from useradmin.models import ViewMode
from useradmin.users_api import UsersAPIError


def _script(monkeypatch, answers: Iterable[str], passwords: Iterable[str] = ()) -> None:
    answer_iter = iter(answers)
    password_iter = iter(passwords)

    def _reader(values):
        def read(_prompt: str = "") -> str:
            try:
                return next(values)
            except StopIteration:
                raise EOFError from None

        return read

    monkeypatch.setattr("builtins.input", _reader(answer_iter))
    monkeypatch.setattr(console_module, "getpass", _reader(password_iter))


def test_console_lists_users_after_loading(monkeypatch, capsys):
    api = FakeUsersAPI([ALICE])
    controller = UserManagementController(api)
    _script(monkeypatch, ["1", "6"])

    run_console(controller)

    output = capsys.readouterr().out
    assert "Loading users..." in output
    assert "alice" in output
    assert "2024-01-01" in output
    assert controller.mode is ViewMode.LISTING


def test_console_reports_empty_collection(monkeypatch, capsys):
    controller = UserManagementController(FakeUsersAPI())
    _script(monkeypatch, ["1", "6"])

    run_console(controller)

    assert "No users registered." in capsys.readouterr().out


def test_console_creates_user(monkeypatch, capsys):
    api = FakeUsersAPI()
    controller = UserManagementController(api)
    _script(monkeypatch, ["2", "bob", "b@x.com", "", "6"], passwords=["pw"])

    run_console(controller)

    assert ("create", {"username": "bob", "email": "b@x.com", "password": "pw", "role": "user"}) in api.calls
    assert "User saved." in capsys.readouterr().out
    assert [user.username for user in controller.users] == ["bob"]


def test_console_blank_username_cancels_create(monkeypatch, capsys):
    api = FakeUsersAPI()
    controller = UserManagementController(api)
    _script(monkeypatch, ["2", "", "6"])

    run_console(controller)

    assert api.count("create") == 0
    assert "Cancelled." in capsys.readouterr().out
    assert controller.mode is ViewMode.LISTING


def test_console_edit_keeps_defaults_and_skips_password(monkeypatch):
    api = FakeUsersAPI([ALICE])
    controller = UserManagementController(api)
    _script(monkeypatch, ["3", "1", "", "alice@example.com", "", "6"])

    run_console(controller)

    assert ("update", 1, {"username": "alice", "email": "alice@example.com", "role": "admin"}) in api.calls


def test_console_failed_save_can_be_discarded(monkeypatch, capsys):
    api = FakeUsersAPI()
    api.save_error = UsersAPIError("conflict", status_code=409, message="username taken")
    controller = UserManagementController(api)
    _script(monkeypatch, ["2", "bob", "b@x.com", "user", "n", "6"], passwords=["pw"])

    run_console(controller)

    assert "Failed to save user: username taken" in capsys.readouterr().out
    assert controller.mode is ViewMode.LISTING
    assert controller.draft is None


def test_console_delete_declined(monkeypatch, capsys):
    api = FakeUsersAPI([ALICE])
    controller = UserManagementController(api, confirm=confirm_deletion)
    _script(monkeypatch, ["4", "1", "n", "6"])

    run_console(controller)

    assert api.count("delete") == 0
    assert "User was not deleted." in capsys.readouterr().out


def test_console_delete_confirmed(monkeypatch, capsys):
    api = FakeUsersAPI([ALICE])
    controller = UserManagementController(api, confirm=confirm_deletion)
    _script(monkeypatch, ["4", "1", "y", "1", "6"])

    run_console(controller)

    output = capsys.readouterr().out
    assert api.calls[-2:] == [("delete", 1), ("list",)]
    assert "Deleted user alice." in output
    assert "No users registered." in output


def test_console_exits_on_end_of_input(monkeypatch, capsys):
    controller = UserManagementController(FakeUsersAPI())
    _script(monkeypatch, [])

    run_console(controller)

    assert "Exiting administration console." in capsys.readouterr().out
