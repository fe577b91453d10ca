# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Signup and login flows over the user store.

Both return ``Ok(UserRecord)`` or ``Invalid(message)``; the message is shown
as is on the originating form.
"""

from __future__ import annotations

import logging

from portal.auth.passwords import hash_password, verify_password
from portal.auth.users import UserRecord, UserStore
from portal.auth.validation import Invalid, LoginForm, Ok, Result, SignupForm

_logger = logging.getLogger(__name__)

DUPLICATE_ACCOUNT = "User with that email already exists!"
USER_NOT_FOUND = "User not found"
INCORRECT_PASSWORD = "Incorrect password"


def register(users: UserStore, form: SignupForm) -> Result[UserRecord]:
    if users.find_by_email(form.email) is not None:
        _logger.info("Signup rejected: %s is already registered", form.email)
        return Invalid(DUPLICATE_ACCOUNT)

    user = UserRecord(name=form.name, email=form.email, password_hash=hash_password(form.password))
    users.insert(user)
    _logger.info("Created account for %s", user.email)
    return Ok(user)


def authenticate(users: UserStore, form: LoginForm) -> Result[UserRecord]:
    user = users.find_by_email(form.email)
    if user is None:
        _logger.info("Login rejected: no account for %s", form.email)
        return Invalid(USER_NOT_FOUND)

    if not verify_password(form.password, user.password_hash):
        _logger.warning("Login rejected: wrong password for %s", form.email)
        return Invalid(INCORRECT_PASSWORD)

    return Ok(user)
