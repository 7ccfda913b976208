"""Web interface for the user administration console."""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import Dict, Tuple
from urllib.parse import parse_qs

import anyio
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .controller import InvalidTransitionError, UserManagementController
from .models import DRAFT_FIELDS, ViewMode
from .schemas import Role
from .sessions import SessionManager

logger = logging.getLogger("useradmin.web")

SESSION_COOKIE_NAME = "useradmin_session"
BUSY_MESSAGE = "A previous request is still in progress."


def _template_environment() -> Jinja2Templates:
    base_dir = Path(__file__).resolve().parent
    return Jinja2Templates(directory=str(base_dir / "templates"))


async def _parse_form(request: Request) -> Dict[str, str]:
    body_bytes = await request.body()
    content_type = request.headers.get("content-type", "")
    charset = "utf-8"
    if "charset=" in content_type:
        charset = content_type.split("charset=", 1)[1].split(";", 1)[0].strip() or "utf-8"
    try:
        decoded = body_bytes.decode(charset)
    except (LookupError, UnicodeDecodeError):
        decoded = body_bytes.decode("utf-8", errors="ignore")
    data = parse_qs(decoded, keep_blank_values=True)
    return {key: values[0] for key, values in data.items() if values}


def register_ui_routes(
    app: FastAPI,
    *,
    session_manager: SessionManager,
    secure_cookies: bool,
) -> None:
    """Expose the user administration pages on the provided FastAPI app."""

    templates = _template_environment()
    static_dir = Path(__file__).resolve().parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    router = APIRouter(include_in_schema=False)

    def _issue_session_cookie(response, token: str) -> None:
        response.set_cookie(
            SESSION_COOKIE_NAME,
            token,
            max_age=session_manager.cookie_max_age,
            secure=secure_cookies,
            httponly=True,
            samesite="lax",
            path="/",
        )

    def _load_session(request: Request) -> Tuple[str, UserManagementController]:
        token = request.cookies.get(SESSION_COOKIE_NAME)
        controller = session_manager.resolve(token) if token else None
        if token is None or controller is None:
            token, controller = session_manager.create()
            logger.debug("Started a new console session")
        return token, controller

    def _redirect_to_users(request: Request, token: str) -> RedirectResponse:
        response = RedirectResponse(request.url_for("ui_users"), status_code=status.HTTP_303_SEE_OTHER)
        _issue_session_cookie(response, token)
        return response

    def _base_context(request: Request, token: str, **extra) -> Dict[str, object]:
        context: Dict[str, object] = {
            "request": request,
            "messages": session_manager.consume_flashes(token),
            "roles": list(Role),
        }
        context.update(extra)
        return context

    @router.get("/", name="ui_home")
    async def homepage(request: Request):
        token, _ = _load_session(request)
        return _redirect_to_users(request, token)

    @router.get("/healthz", name="healthz")
    async def healthz():
        return JSONResponse({"status": "ok"})

    @router.get("/users", response_class=HTMLResponse, name="ui_users")
    async def users_page(request: Request):
        token, controller = _load_session(request)
        if controller.loading:
            await anyio.to_thread.run_sync(controller.refresh)

        view = controller.view
        if view.mode is ViewMode.EDITING:
            context = _base_context(
                request,
                token,
                draft=controller.draft,
                target=view.target,
                is_creating=view.is_creating,
                alert=controller.message,
            )
            response = templates.TemplateResponse(request, "user_form.html", context)
        else:
            context = _base_context(request, token, users=controller.users)
            response = templates.TemplateResponse(request, "users.html", context)
        _issue_session_cookie(response, token)
        return response

    @router.post("/users/new", name="ui_new_user")
    async def new_user(request: Request):
        token, controller = _load_session(request)
        try:
            controller.begin_create()
        except InvalidTransitionError as exc:
            logger.debug("Ignoring create request: %s", exc)
        return _redirect_to_users(request, token)

    @router.post("/users/form", name="ui_submit_user")
    async def submit_user(request: Request):
        token, controller = _load_session(request)
        data = await _parse_form(request)
        try:
            controller.update_fields({name: data[name] for name in DRAFT_FIELDS if name in data})
            saved = await anyio.to_thread.run_sync(controller.submit)
        except InvalidTransitionError as exc:
            logger.debug("Ignoring form submission: %s", exc)
            if exc.busy:
                session_manager.flash(token, BUSY_MESSAGE, category="error")
            return _redirect_to_users(request, token)
        except ValueError as exc:
            session_manager.flash(token, str(exc), category="error")
            return _redirect_to_users(request, token)

        if saved:
            session_manager.flash(token, "User saved.", category="success")
        return _redirect_to_users(request, token)

    @router.post("/users/form/cancel", name="ui_cancel_user")
    async def cancel_user(request: Request):
        token, controller = _load_session(request)
        try:
            controller.cancel()
        except InvalidTransitionError as exc:
            logger.debug("Ignoring cancel request: %s", exc)
        return _redirect_to_users(request, token)

    @router.post("/users/{user_id}/edit", name="ui_edit_user")
    async def edit_user(request: Request, user_id: str):
        token, controller = _load_session(request)
        user = controller.find_user(user_id)
        if user is None:
            session_manager.flash(token, "User not found.", category="error")
            return _redirect_to_users(request, token)
        try:
            controller.begin_edit(user)
        except InvalidTransitionError as exc:
            logger.debug("Ignoring edit request: %s", exc)
        return _redirect_to_users(request, token)

    @router.get("/users/{user_id}/delete", response_class=HTMLResponse, name="ui_confirm_delete")
    async def confirm_delete(request: Request, user_id: str):
        token, controller = _load_session(request)
        user = controller.find_user(user_id) if controller.mode is ViewMode.LISTING else None
        if user is None:
            return _redirect_to_users(request, token)
        context = _base_context(request, token, user=user)
        response = templates.TemplateResponse(request, "confirm_delete.html", context)
        _issue_session_cookie(response, token)
        return response

    @router.post("/users/{user_id}/delete", name="ui_delete_user")
    async def delete_user(request: Request, user_id: str):
        token, controller = _load_session(request)
        data = await _parse_form(request)
        confirmed = data.get("confirm", "").strip().lower() == "yes"

        user = controller.find_user(user_id)
        if user is None:
            session_manager.flash(token, "User not found.", category="error")
            return _redirect_to_users(request, token)

        remove = partial(controller.remove, user.id, confirm=lambda _user_id: confirmed)
        try:
            deleted = await anyio.to_thread.run_sync(remove)
        except InvalidTransitionError as exc:
            logger.debug("Ignoring delete request: %s", exc)
            if exc.busy:
                session_manager.flash(token, BUSY_MESSAGE, category="error")
            return _redirect_to_users(request, token)

        if deleted:
            session_manager.flash(token, f"Deleted user '{user.username}'.", category="success")
        return _redirect_to_users(request, token)

    app.include_router(router)


__all__ = ["BUSY_MESSAGE", "SESSION_COOKIE_NAME", "register_ui_routes"]
