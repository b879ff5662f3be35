"""
auth/guard.py -- Bearer token check for inbound calls.

authenticate_header() is a pure function of the Authorization header value,
the current time and the signing secret. It performs no I/O: the identity it
returns is whatever the verified token says, and callers that need the user
row look it up themselves.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime

from auth.errors import Forbidden, TokenError, Unauthenticated
from auth.models import Identity
from auth.tokens import decode_access_token

logger = logging.getLogger("orggate.auth")


def extract_token(header: str | None) -> str | None:
    """Return the credential part of "Bearer <token>", or None if absent.

    Only the second whitespace-separated part is used, so an unexpected
    scheme word still yields a token that then fails verification.
    """
    if not header:
        return None
    parts = header.split()
    if len(parts) < 2:
        return None
    return parts[1]


def authenticate_header(
    header: str | None,
    now: datetime | None = None,
    secret_key: str | None = None,
) -> Identity:
    """Turn an Authorization header into an Identity.

    Raises:
        Unauthenticated: no token was presented (401 at the boundary).
        Forbidden:       a token was presented but is malformed, badly signed
                         or expired (403). The TokenError is kept as .reason.
    """
    token = extract_token(header)
    if token is None:
        raise Unauthenticated()
    try:
        claims = decode_access_token(token, now=now, secret_key=secret_key)
    except TokenError as exc:
        logger.debug("Rejected bearer token: %s", type(exc).__name__)
        raise Forbidden(reason=exc) from exc
    return Identity(user_id=claims.user_id, email=claims.email)
