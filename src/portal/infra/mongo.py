# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""MongoDB connection helpers.

The client is created lazily (``connect=False``) and shared by every request;
pymongo pools connections internally.
"""

from __future__ import annotations

import logging
from urllib.parse import quote_plus

from pymongo import MongoClient
from pymongo.database import Database

from portal.config import Settings

_logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
SESSIONS_COLLECTION = "sessions"


def build_uri(settings: Settings) -> str:
    """Return the connection URI, preferring an explicit MONGODB_URI."""
    if settings.mongodb_uri:
        return settings.mongodb_uri
    if not settings.mongodb_host:
        raise RuntimeError("Missing MONGODB_HOST (or MONGODB_URI) in environment")
    user = quote_plus(settings.mongodb_user)
    password = quote_plus(settings.mongodb_password)
    return (
        f"mongodb+srv://{user}:{password}@{settings.mongodb_host}/"
        f"{settings.mongodb_database}?retryWrites=true&w=majority"
    )


def connect(settings: Settings) -> Database:
    client: MongoClient = MongoClient(build_uri(settings), tz_aware=True, connect=False)
    _logger.info("MongoDB client created for database %r", settings.mongodb_database)
    return client[settings.mongodb_database]
