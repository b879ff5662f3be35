"""
auth/errors.py -- Domain error taxonomy for the auth core.

Every failure a flow can report is a subclass of AuthError. None of these
classes know about HTTP: api/main.py owns the single table that maps each
kind to a wire status, so the core stays transport-agnostic.

Layer rule: no imports from api/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for expected, typed failures of the auth core."""

    message: str = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


class DuplicateEmail(AuthError):
    """The email is already registered. Reported as a field error on email."""

    field = "email"
    message = "Email already in use"


class RegistrationFailed(AuthError):
    message = "Registration unsuccessful"


class AuthenticationFailed(AuthError):
    """Unknown email or wrong password. Deliberately does not say which."""

    message = "Authentication failed"


# ---------------------------------------------------------------------------
# Access guard
# ---------------------------------------------------------------------------


class Unauthenticated(AuthError):
    """No bearer token was presented."""

    message = "Authentication required."


class Forbidden(AuthError):
    """A bearer token was presented but did not verify.

    reason holds the TokenError that caused the rejection so tests and logs
    can tell malformed, badly signed and expired tokens apart. The wire
    response is identical for all three.
    """

    message = "Invalid or expired token."

    def __init__(self, reason: TokenError | None = None) -> None:
        super().__init__()
        self.reason = reason


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------


class TokenError(AuthError):
    message = "Invalid token."


class MalformedToken(TokenError):
    message = "Token is malformed."


class InvalidSignature(TokenError):
    message = "Token signature does not verify."


class TokenExpired(TokenError):
    message = "Token has expired."


# ---------------------------------------------------------------------------
# Lookups / membership
# ---------------------------------------------------------------------------


class UserNotFound(AuthError):
    message = "User not found"


class OrganisationNotFound(AuthError):
    message = "Organisation not found"


class NotMember(AuthError):
    """Raised whether or not the organisation exists, so a non-member cannot
    probe for organisation ids."""

    message = "User does not belong to this organisation"
