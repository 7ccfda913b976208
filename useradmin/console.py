"""Interactive terminal front end for the user administration controller."""

from __future__ import annotations

from getpass import getpass

from .controller import InvalidTransitionError, UserManagementController
from .models import Draft, ViewMode
from .schemas import Role
from .users_api import UserId


def confirm_deletion(user_id: UserId) -> bool:
    answer = input(f"Are you sure you want to delete user {user_id}? [y/N]: ").strip().lower()
    return answer in {"y", "yes"}


def run_console(controller: UserManagementController) -> None:
    """Provide an interactive menu over ``controller`` until the operator exits."""

    print("User Administration Console")
    print("Press Ctrl+C at any time to exit.\n")

    if controller.mode is ViewMode.LOADING:
        print("Loading users...")
        controller.refresh()

    try:
        while True:
            print("Select an option:")
            print("  1) List users")
            print("  2) Add a new user")
            print("  3) Edit a user")
            print("  4) Delete a user")
            print("  5) Reload users")
            print("  6) Exit")

            choice = input("Enter choice [1-6]: ").strip()

            if choice == "1":
                list_users(controller)
            elif choice == "2":
                add_user(controller)
            elif choice == "3":
                edit_user(controller)
            elif choice == "4":
                delete_user(controller)
            elif choice == "5":
                controller.refresh()
                list_users(controller)
            elif choice == "6":
                print("Goodbye!")
                return
            else:
                print("Invalid selection. Please choose a number from the menu.\n")

            print()
    except (KeyboardInterrupt, EOFError):
        print("\nExiting administration console.")


def list_users(controller: UserManagementController) -> None:
    users = controller.users
    if not users:
        print("No users registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>6}  {'Username':<20}  {'Email':<32}  {'Role':<6}  Created")
    print("-" * 80)
    for user in users:
        print(
            f"{str(user.id):>6}  {user.username:<20}  {user.email:<32}  "
            f"{user.role.value:<6}  {user.created_date}"
        )


def add_user(controller: UserManagementController) -> None:
    print("\nCreate a new user (leave the username blank to cancel).")
    controller.begin_create()
    _complete_form(controller)


def edit_user(controller: UserManagementController) -> None:
    user = _prompt_for_user(controller)
    if user is None:
        return
    print(f"\nEditing {user.username} (press Enter to keep the current value).")
    controller.begin_edit(user)
    _complete_form(controller)


def delete_user(controller: UserManagementController) -> None:
    user = _prompt_for_user(controller)
    if user is None:
        return
    if controller.remove(user.id):
        print(f"Deleted user {user.username}.")
    else:
        print("User was not deleted.")


def _prompt_for_user(controller: UserManagementController):
    raw = input("User ID: ").strip()
    if not raw:
        return None
    user = controller.find_user(raw)
    if user is None:
        print(f"No user with ID {raw} is loaded.")
    return user


def _prompt(label: str, current: str) -> str:
    suffix = f" [{current}]" if current else ""
    value = input(f"{label}{suffix}: ").strip()
    return value or current


def _prompt_for_role(current: Role) -> str:
    while True:
        value = _prompt("Role (user/admin)", current.value).lower()
        if value in {role.value for role in Role}:
            return value
        print("Role must be 'user' or 'admin'.")


def _fill_draft(controller: UserManagementController, draft: Draft) -> bool:
    username = _prompt("Username", draft.username)
    if not username:
        return False
    controller.set_field("username", username)
    controller.set_field("email", _prompt("Email address", draft.email))
    if controller.view.is_creating:
        password = getpass("Password: ") or draft.password
        controller.set_field("password", password)
    controller.set_field("role", _prompt_for_role(draft.role))
    return True


def _complete_form(controller: UserManagementController) -> None:
    while True:
        draft = controller.draft
        if draft is None:
            raise InvalidTransitionError("complete the form", controller.mode)
        if not _fill_draft(controller, draft):
            controller.cancel()
            print("Cancelled.")
            return

        if controller.submit():
            print("User saved.")
            return

        print(f"Failed to save user: {controller.message}")
        retry = input("Edit and retry? [y/N]: ").strip().lower()
        if retry not in {"y", "yes"}:
            controller.cancel()
            print("Changes discarded.")
            return


__all__ = ["confirm_deletion", "run_console"]
