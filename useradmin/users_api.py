"""HTTP client for the remote users API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .schemas import CreateUserRequest, UpdateUserRequest, User


logger = logging.getLogger("useradmin.users_api")

UserId = Union[int, str]

ERROR_EXCERPT_LENGTH = 200


class UsersAPIError(Exception):
    """Raised when the users API cannot be reached or rejects a request.

    ``message`` carries the human-readable text reported by the server, if it
    sent one; it is ``None`` for transport failures and bare error responses.
    """

    def __init__(
        self,
        description: str,
        *,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(description)
        self.status_code = status_code
        self.message = message


@dataclass
class _ClientConfig:
    base_url: str
    api_token: Optional[str]
    timeout: float


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("Users API base URL must not be empty")
    return cleaned.rstrip("/")


def _user_path(user_id: UserId) -> str:
    return f"/users/{quote(str(user_id), safe='')}"


def _extract_error_message(payload: object) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _body_excerpt(text: str, limit: int = ERROR_EXCERPT_LENGTH) -> str:
    collapsed = " ".join(text.split())
    if len(collapsed) > limit:
        return collapsed[:limit] + "..."
    return collapsed


class UsersAPI:
    """Thin synchronous client for the ``/users`` REST resource."""

    def __init__(
        self,
        base_url: str,
        *,
        api_token: Optional[str] = None,
        timeout: float = 10.0,
        verify: Union[bool, str, None] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = _ClientConfig(
            base_url=_normalize_base_url(base_url),
            api_token=(api_token or "").strip() or None,
            timeout=timeout,
        )
        headers = {"Accept": "application/json"}
        if self._config.api_token:
            headers["Authorization"] = f"Bearer {self._config.api_token}"

        client_kwargs = {
            "base_url": self._config.base_url,
            "headers": headers,
            "timeout": timeout,
        }
        if verify is not None:
            client_kwargs["verify"] = verify
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "UsersAPI":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def list_users(self) -> List[User]:
        payload = self._request("GET", "/users")
        if isinstance(payload, dict) and isinstance(payload.get("users"), list):
            payload = payload["users"]
        if not isinstance(payload, list):
            raise UsersAPIError("Users API returned an unexpected response payload")
        try:
            return [User.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise UsersAPIError("Users API returned an invalid user record") from exc

    def create_user(self, request: CreateUserRequest) -> Optional[User]:
        """Create a user; returns the stored record when the server echoes it."""

        payload = self._request("POST", "/users", json=request.model_dump(mode="json"))
        return self._parse_saved_user(payload)

    def update_user(self, user_id: UserId, request: UpdateUserRequest) -> Optional[User]:
        payload = self._request("PUT", _user_path(user_id), json=request.model_dump(mode="json"))
        return self._parse_saved_user(payload)

    def delete_user(self, user_id: UserId) -> None:
        self._request("DELETE", _user_path(user_id))

    def _parse_saved_user(self, payload: object) -> Optional[User]:
        # The write already succeeded; an unusable echo is not a failure.
        if payload is None:
            return None
        try:
            return User.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Users API accepted the save but returned an unreadable record: %s", exc)
            return None

    def _request(self, method: str, path: str, *, json: Optional[dict] = None) -> object:
        try:
            response = self._client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            raise UsersAPIError(f"Users API request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise UsersAPIError(f"Failed to contact users API: {exc}") from exc

        logger.debug("%s %s returned %s", method, path, response.status_code)
        if response.status_code >= 400:
            try:
                parsed = response.json()
            except ValueError:
                parsed = None
            message = _extract_error_message(parsed)
            description = f"{method} {path} failed with status {response.status_code}"
            if message:
                description = f"{description}: {message}"
            elif response.text.strip():
                description = f"{description}: {_body_excerpt(response.text)}"
            raise UsersAPIError(
                description,
                status_code=response.status_code,
                message=message,
            )

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            if method == "GET":
                raise UsersAPIError("Users API returned an invalid response") from exc
            logger.warning("%s %s returned a body that is not JSON", method, path)
            return None


__all__ = ["UserId", "UsersAPI", "UsersAPIError"]
