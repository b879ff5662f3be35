"""
auth/tokens.py -- Password hashing and JWT issue/verify.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       userId, email, iat and exp. There is no revocation list: a token is
       valid exactly when its signature verifies and its expiry is in the
       future. decode_access_token() raises a distinct TokenError subclass for
       malformed, badly signed and expired tokens; the guard collapses all
       three into a single 403.

  Passwords: bcrypt used directly (no passlib wrapper). Cost factor comes
       from Settings.bcrypt_rounds (10 by default). _DUMMY_HASH lets
       authenticate() in auth/flows.py run one bcrypt check even for unknown
       emails, so response time does not reveal whether an email exists.

  SECRET_KEY: sourced from core.config.get_settings(), validated at startup
       (>=32 chars, required outside DEBUG).

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.errors import InvalidSignature, MalformedToken, TokenExpired
from auth.models import TokenClaims
from core.config import get_settings

logger = logging.getLogger("orggate.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValueError for an empty password or one longer than 72 bytes
    once UTF-8 encoded; bcrypt would otherwise truncate it silently.
    """
    encoded = plain.encode("utf-8")
    if not encoded:
        raise ValueError("Password must not be empty.")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {_BCRYPT_MAX_BYTES} bytes.")
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. Malformed hashes and
    over-long inputs are treated as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("orggate_timing_dummy")


def verify_dummy_password(plain: str) -> None:
    """Spend one bcrypt check on a password that cannot match anything."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, email: str, expire_seconds: int = 0, now: datetime | None = None) -> str:
    """Encode a signed JWT carrying the caller's identity.

    Args:
        user_id:        Numeric user id.
        email:          Email of the user, carried as the "email" claim.
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (one hour).
        now:            Issue time; defaults to the current UTC time.
    """
    issued = now or datetime.now(timezone.utc)
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    payload = {
        "userId": user_id,
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str, now: datetime | None = None, secret_key: str | None = None) -> TokenClaims:
    """Verify a JWT and return its identity claims.

    Raises:
        MalformedToken:   the token cannot be parsed, or lacks userId/email/exp.
        InvalidSignature: the signature does not verify with the secret.
        TokenExpired:     now >= exp.

    Expiry is checked here rather than by python-jose so that a token is
    already expired at the exact second its exp claim names.
    """
    try:
        unverified = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedToken() from exc

    if not _has_identity_claims(unverified):
        raise MalformedToken()

    try:
        payload = jwt.decode(
            token,
            secret_key or _settings.secret_key,
            algorithms=[_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        raise InvalidSignature() from exc

    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    current = now or datetime.now(timezone.utc)
    if current >= expires_at:
        raise TokenExpired()

    return TokenClaims(user_id=payload["userId"], email=payload["email"], expires_at=expires_at)


def _has_identity_claims(claims: dict) -> bool:
    user_id = claims.get("userId")
    return (
        isinstance(user_id, int)
        and not isinstance(user_id, bool)
        and isinstance(claims.get("email"), str)
        and isinstance(claims.get("exp"), (int, float))
    )
