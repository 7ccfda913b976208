"""In-memory session handling for the web console."""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from .controller import UserManagementController

logger = logging.getLogger("useradmin.sessions")


@dataclass
class _SessionRecord:
    controller: UserManagementController
    expires_at: datetime
    flashes: List[Dict[str, str]] = field(default_factory=list)


class SessionManager:
    """Give every browser session its own controller.

    Expired sessions are swept whenever a new one is opened, and at most
    ``max_sessions`` are kept; beyond that the sessions closest to expiry
    are dropped first.
    """

    def __init__(
        self,
        controller_factory: Callable[[], UserManagementController],
        *,
        ttl: timedelta = timedelta(hours=8),
        max_sessions: int = 1000,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._factory = controller_factory
        self._ttl = ttl
        self._max_sessions = max_sessions
        self._sessions: Dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def cookie_max_age(self) -> int:
        return int(self._ttl.total_seconds())

    def create(self) -> Tuple[str, UserManagementController]:
        token = secrets.token_urlsafe(32)
        now = self._now()
        record = _SessionRecord(controller=self._factory(), expires_at=now + self._ttl)
        with self._lock:
            self._sweep(now)
            self._sessions[token] = record
        return token, record.controller

    def resolve(self, token: str) -> Optional[UserManagementController]:
        record = self._touch(token)
        return record.controller if record is not None else None

    def flash(self, token: str, message: str, *, category: str = "info") -> None:
        with self._lock:
            record = self._sessions.get(token)
            if record is not None:
                record.flashes.append({"message": message, "category": category})

    def consume_flashes(self, token: str) -> List[Dict[str, str]]:
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return []
            messages, record.flashes = record.flashes, []
        return messages

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def _sweep(self, now: datetime) -> None:
        # Caller holds the lock; leaves room for one more session.
        expired = [token for token, record in self._sessions.items() if record.expires_at <= now]
        for token in expired:
            del self._sessions[token]

        overflow = len(self._sessions) - self._max_sessions + 1
        evicted: List[str] = []
        if overflow > 0:
            by_expiry = sorted(self._sessions, key=lambda token: self._sessions[token].expires_at)
            evicted = by_expiry[:overflow]
            for token in evicted:
                del self._sessions[token]

        if expired or evicted:
            logger.debug("Dropped %d expired and %d surplus sessions", len(expired), len(evicted))

    def _touch(self, token: str) -> Optional[_SessionRecord]:
        now = self._now()
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if record.expires_at <= now:
                self._sessions.pop(token, None)
                return None
            record.expires_at = now + self._ttl
            return record

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["SessionManager"]
