# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.auth.session import ANONYMOUS, Session, SessionStore, destroy, establish
from portal.auth.users import UserStore
from portal.auth.validation import Invalid, validate
from portal.config import Settings
from portal.infra.mongo import SESSIONS_COLLECTION, USERS_COLLECTION, connect
from portal.permissions import (
    apply_session,
    current_session,
    get_user_store,
    require_authenticated,
)
from portal.services.account_service import authenticate, register

_logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

MEMBER_IMAGES = ("/static/img1.svg", "/static/img2.svg", "/static/img3.svg")

router = APIRouter()


def _render(request: Request, template_name: str, ctx: Optional[dict] = None, *, status_code: int = 200):
    """TemplateResponse wrapper injecting the current session."""
    base_ctx = {"session": getattr(request.state, "session", None) or ANONYMOUS}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


async def form_fields(request: Request) -> Dict[str, str]:
    form = await request.form()
    return {k: v for k, v in form.items() if isinstance(v, str)}


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=302)


# ------------------ Routes ------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request, session: Session = Depends(current_session)):
    return _render(
        request,
        "index.html",
        {
            "authenticated": session.authenticated,
            "username": session.username if session.authenticated else None,
        },
    )


@router.get("/signup", response_class=HTMLResponse)
def signup_get(request: Request, session: Session = Depends(current_session)):
    return _render(request, "signup.html", {"error": None, "form": {}})


@router.post("/signup")
def signup_post(
    request: Request,
    fields: Dict[str, str] = Depends(form_fields),
    session: Session = Depends(current_session),
    users: UserStore = Depends(get_user_store),
):
    echo = {"name": fields.get("name", ""), "email": fields.get("email", "")}

    checked = validate("signup", fields)
    if isinstance(checked, Invalid):
        return _render(request, "signup.html", {"error": checked.reason, "form": echo})

    created = register(users, checked.value)
    if isinstance(created, Invalid):
        return _render(request, "signup.html", {"error": created.reason, "form": echo})

    after = establish(session, created.value.name)
    return apply_session(request, _redirect("/members"), session, after)


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request, session: Session = Depends(current_session)):
    return _render(request, "login.html", {"error": None, "form": {}})


@router.post("/login")
def login_post(
    request: Request,
    fields: Dict[str, str] = Depends(form_fields),
    session: Session = Depends(current_session),
    users: UserStore = Depends(get_user_store),
):
    echo = {"email": fields.get("email", "")}

    checked = validate("login", fields)
    if isinstance(checked, Invalid):
        return _render(request, "login.html", {"error": checked.reason, "form": echo})

    found = authenticate(users, checked.value)
    if isinstance(found, Invalid):
        return _render(request, "login.html", {"error": found.reason, "form": echo})

    _logger.info("User %s logged in", found.value.email)
    after = establish(session, found.value.name)
    return apply_session(request, _redirect("/members"), session, after)


@router.get("/members", response_class=HTMLResponse)
def members(request: Request, session: Session = Depends(require_authenticated)):
    return _render(
        request,
        "members.html",
        {"username": session.username, "image": random.choice(MEMBER_IMAGES)},
    )


@router.get("/logout")
def logout(request: Request, session: Session = Depends(current_session)):
    if session.authenticated:
        _logger.info("User %s logged out", session.username)
    return apply_session(request, _redirect("/"), session, destroy(session))


# ------------------ Error pages ------------------


async def _http_error(request: Request, exc: StarletteHTTPException):
    # No route matched the path, or none matched it for this method.
    if exc.status_code in (404, 405):
        if getattr(request.state, "session", None) is None:
            try:
                await run_in_threadpool(current_session, request)
            except PyMongoError:
                _logger.warning("Session lookup failed while rendering 404 for %s", request.url.path)
        return _render(request, "404.html", status_code=404)
    return await http_exception_handler(request, exc)


async def _database_error(request: Request, exc: PyMongoError):
    _logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _render(request, "503.html", status_code=503)


# ------------------ Factory ------------------


def _attach_stores(app: FastAPI, database: Database) -> None:
    settings: Settings = app.state.settings
    if not settings.session_secret:
        raise RuntimeError("Missing SESSION_SECRET (or PORTAL_SECRET_KEY) in environment")
    app.state.users = UserStore(database[USERS_COLLECTION])
    app.state.sessions = SessionStore(database[SESSIONS_COLLECTION], secret=settings.store_secret)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application.

    With ``database`` given the stores are bound immediately; otherwise the
    MongoDB client is created on startup from ``settings``.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "sessions", None) is None:
            _attach_stores(app, connect(settings))
        await run_in_threadpool(app.state.sessions.ensure_indexes)
        yield

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    if database is not None:
        _attach_stores(app, database)

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
    app.include_router(router)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(PyMongoError, _database_error)
    return app


app = create_app()
