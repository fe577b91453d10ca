# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2, fixed work factor)
- Signup/login form validation (pydantic) as Ok | Invalid results
- User records in the MongoDB ``users`` collection
- Sessions stored in MongoDB and referenced by a signed cookie (itsdangerous)
"""
