# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Sessions.

A ``Session`` is an immutable value. Route handlers receive the current one and
compute the next one with ``establish`` / ``destroy``; ``commit_session`` then
writes the difference to the store and to the response cookie.

The browser only ever holds the session id, signed with the session secret.
The attributes live in the MongoDB ``sessions`` collection, signed with the
store secret and expired by a TTL index on ``expiresAt``.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from itsdangerous import BadSignature, URLSafeSerializer, URLSafeTimedSerializer
from pymongo.collection import Collection
from starlette.responses import Response

_logger = logging.getLogger(__name__)

SESSION_MAX_AGE_MS = 60 * 60 * 1000  # 1 hour
SESSION_TTL = timedelta(milliseconds=SESSION_MAX_AGE_MS)
COOKIE_SALT = "portal.session.v1"
STORE_SALT = "portal.session.store.v1"


@dataclass(frozen=True)
class Session:
    session_id: Optional[str] = None
    authenticated: bool = False
    username: Optional[str] = None
    expires_at: Optional[datetime] = None


ANONYMOUS = Session()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def establish(session: Session, username: str, *, now: Optional[datetime] = None) -> Session:
    """Return ``session`` marked authenticated for ``username`` for the next hour."""
    now = now or _utcnow()
    return replace(
        session,
        session_id=session.session_id or new_session_id(),
        authenticated=True,
        username=username,
        expires_at=now + SESSION_TTL,
    )


def destroy(session: Session) -> Session:
    return ANONYMOUS


# ------------------ Cookie ------------------


def _cookie_serializer(secret: str) -> URLSafeTimedSerializer:
    if not secret:
        raise RuntimeError("Missing SESSION_SECRET (or PORTAL_SECRET_KEY) in environment")
    return URLSafeTimedSerializer(secret_key=secret, salt=COOKIE_SALT)


def sign_session_id(session_id: str, *, secret: str) -> str:
    return _cookie_serializer(secret).dumps(session_id)


def unsign_session_id(token: str, *, secret: str, max_age: int = SESSION_MAX_AGE_MS // 1000) -> Optional[str]:
    """Return the session id carried by a cookie, or None if it is missing, forged or too old."""
    if not token:
        return None
    try:
        sid = _cookie_serializer(secret).loads(token, max_age=max_age)
    except BadSignature:
        return None
    sid = str(sid or "").strip()
    return sid or None


# ------------------ Store ------------------


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionStore:
    """Session documents in MongoDB: ``{_id, session, expiresAt}``."""

    def __init__(self, collection: Collection, *, secret: str):
        if not secret:
            raise RuntimeError("Missing MONGODB_SESSION_SECRET in environment")
        self._collection = collection
        self._serializer = URLSafeSerializer(secret_key=secret, salt=STORE_SALT)

    def ensure_indexes(self) -> None:
        # expireAfterSeconds=0: each document expires at its own expiresAt
        self._collection.create_index("expiresAt", expireAfterSeconds=0)

    def load(self, session_id: str, *, now: Optional[datetime] = None) -> Optional[Session]:
        if not session_id:
            return None
        doc = self._collection.find_one({"_id": session_id})
        if not doc:
            return None

        expires_at = doc.get("expiresAt")
        if not isinstance(expires_at, datetime):
            return None
        expires_at = _as_aware(expires_at)
        # The TTL monitor only sweeps periodically.
        if expires_at <= (now or _utcnow()):
            return None

        try:
            data = self._serializer.loads(doc.get("session") or "")
        except BadSignature:
            _logger.warning("Discarding session %s with an invalid signature", session_id[:8])
            return None

        return Session(
            session_id=session_id,
            authenticated=bool(data.get("authenticated")),
            username=data.get("username"),
            expires_at=expires_at,
        )

    def save(self, session: Session) -> None:
        if not session.session_id or session.expires_at is None:
            raise ValueError("Only established sessions can be saved")
        payload = self._serializer.dumps(
            {"authenticated": session.authenticated, "username": session.username}
        )
        self._collection.replace_one(
            {"_id": session.session_id},
            {"_id": session.session_id, "session": payload, "expiresAt": session.expires_at},
            upsert=True,
        )

    def delete(self, session_id: str) -> None:
        if session_id:
            self._collection.delete_one({"_id": session_id})


def commit_session(
    response: Response,
    before: Session,
    after: Session,
    *,
    store: SessionStore,
    secret: str,
    cookie_name: str,
    cookie_settings: dict,
) -> Response:
    """Apply the transition ``before -> after`` to the store and the response cookie."""
    if after == before:
        return response

    if after.authenticated and after.session_id:
        store.save(after)
        response.set_cookie(
            cookie_name,
            sign_session_id(after.session_id, secret=secret),
            max_age=SESSION_MAX_AGE_MS // 1000,
            **cookie_settings,
        )
        return response

    if before.session_id and not after.session_id:
        store.delete(before.session_id)
        response.delete_cookie(cookie_name, **cookie_settings)

    return response
