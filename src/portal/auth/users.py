# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pymongo.collection import Collection


@dataclass(frozen=True)
class UserRecord:
    name: str
    email: str
    password_hash: str

    def to_document(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email, "passwordHash": self.password_hash}

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserRecord":
        return cls(
            name=str(doc.get("name") or ""),
            email=str(doc.get("email") or ""),
            password_hash=str(doc.get("passwordHash") or ""),
        )


class UserStore:
    """Access to the ``users`` collection.

    Email uniqueness is checked by the caller before ``insert``; there is no
    unique index behind it.
    """

    def __init__(self, collection: Collection):
        self._collection = collection

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        e = (email or "").strip()
        if not e:
            return None
        doc = self._collection.find_one({"email": e})
        if not doc:
            return None
        return UserRecord.from_document(doc)

    def insert(self, user: UserRecord) -> None:
        self._collection.insert_one(user.to_document())
