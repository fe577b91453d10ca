# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from starlette.responses import Response

from portal.auth.session import ANONYMOUS, Session, SessionStore, commit_session, unsign_session_id
from portal.auth.users import UserStore
from portal.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_user_store(request: Request) -> UserStore:
    return request.app.state.users


def load_session_from_request(request: Request) -> Session:
    settings = get_settings(request)
    token = request.cookies.get(settings.cookie_name, "")
    sid = unsign_session_id(token, secret=settings.session_secret)
    if not sid:
        return ANONYMOUS
    return get_session_store(request).load(sid) or ANONYMOUS


def current_session(request: Request) -> Session:
    s = getattr(request.state, "session", None)
    if s is not None:
        return s
    s = load_session_from_request(request)
    request.state.session = s
    return s


def require_authenticated(session: Session = Depends(current_session)) -> Session:
    if session.authenticated:
        return session
    raise HTTPException(status_code=302, headers={"Location": "/"})


def apply_session(request: Request, response: Response, before: Session, after: Session) -> Response:
    settings = get_settings(request)
    return commit_session(
        response,
        before,
        after,
        store=get_session_store(request),
        secret=settings.session_secret,
        cookie_name=settings.cookie_name,
        cookie_settings=settings.cookie_settings(),
    )
