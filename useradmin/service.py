"""Application factory for the user administration web console."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI

from .config import Settings, load_settings
from .controller import UserManagementController, UsersBackend
from .sessions import SessionManager
from .users_api import UsersAPI
from .web import register_ui_routes

logger = logging.getLogger("useradmin.service")


def build_users_api(settings: Settings) -> UsersAPI:
    return UsersAPI(
        settings.api_base_url,
        api_token=settings.api_token,
        timeout=settings.timeout,
        verify=settings.verify,
    )


def create_app(
    *,
    settings: Optional[Settings] = None,
    users_api: Optional[UsersBackend] = None,
) -> FastAPI:
    """Return the web console bound to the configured users API."""

    if settings is None:
        settings = load_settings()

    owns_client = users_api is None
    api: UsersBackend = build_users_api(settings) if users_api is None else users_api

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info("User administration console using users API at %s", settings.api_base_url)
        try:
            yield
        finally:
            if owns_client and isinstance(api, UsersAPI):
                api.close()

    app = FastAPI(
        title="User Administration",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    if not settings.secure_cookies:
        logger.warning(
            "Session cookies are not marked as secure. Only disable secure cookies for"
            " local development."
        )

    session_manager = SessionManager(
        lambda: UserManagementController(api),
        ttl=timedelta(minutes=settings.session_ttl_minutes),
        max_sessions=settings.max_sessions,
    )

    app.state.settings = settings
    app.state.users_api = api
    app.state.session_manager = session_manager

    register_ui_routes(
        app,
        session_manager=session_manager,
        secure_cookies=settings.secure_cookies,
    )
    return app


__all__ = ["build_users_api", "create_app"]
