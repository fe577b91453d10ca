# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime settings read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

_TRUE = {"1", "true", "yes", "y"}


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE


@dataclass(frozen=True)
class Settings:
    mongodb_host: str = ""
    mongodb_user: str = ""
    mongodb_password: str = ""
    mongodb_database: str = "portal"
    mongodb_uri: str = ""
    session_secret: str = ""
    store_secret: str = ""
    cookie_name: str = "portal_session"
    cookie_secure: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            mongodb_host=os.getenv("MONGODB_HOST", ""),
            mongodb_user=os.getenv("MONGODB_USER", ""),
            mongodb_password=os.getenv("MONGODB_PASSWORD", ""),
            mongodb_database=os.getenv("MONGODB_DATABASE") or "portal",
            mongodb_uri=os.getenv("MONGODB_URI", ""),
            session_secret=os.getenv("SESSION_SECRET") or os.getenv("PORTAL_SECRET_KEY") or "",
            store_secret=os.getenv("MONGODB_SESSION_SECRET", ""),
            cookie_name=os.getenv("PORTAL_COOKIE_NAME") or "portal_session",
            cookie_secure=_flag("PORTAL_COOKIE_SECURE"),
            host=os.getenv("PORTAL_HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            reload=_flag("PORTAL_RELOAD"),
        )

    def cookie_settings(self) -> dict:
        return {"httponly": True, "samesite": "lax", "secure": self.cookie_secure}
