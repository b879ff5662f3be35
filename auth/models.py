"""
auth/models.py -- Domain dataclasses for users, organisations and memberships.

Pattern: Data class (pure data container, zero logic). Stores, flows and
routes do the work; these classes only own the domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered account.

    hashed_password is the bcrypt digest. It never leaves the auth/ package:
    the API layer builds its response from the public fields only.

    id is None before the record is written to the database.
    """

    email: str
    first_name: str
    last_name: str
    hashed_password: str
    phone: str | None = None
    id: int | None = None
    created_at: str | None = None


@dataclass
class Organisation:
    """A group of users. Name is 1-20 chars when user-created; the default
    organisation created at registration is named after the user and is not
    length-checked."""

    name: str
    description: str | None = None
    id: int | None = None
    created_at: str | None = None


@dataclass
class Membership:
    """The fact that a user belongs to an organisation."""

    user_id: int
    org_id: int
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Authenticated caller recovered from a verified bearer token."""

    user_id: int
    email: str


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    expires_at: datetime


@dataclass
class AuthResult:
    """What a successful registration or login hands back to the transport."""

    access_token: str
    user: User
