"""
auth/flows.py -- Registration and login orchestration.

Both flows take the store as an explicit argument; nothing here reaches for
ambient state. They return an AuthResult on success and raise a typed
AuthError on failure. Translating those errors to HTTP is api/main.py's job.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import AuthenticationFailed, DuplicateEmail, RegistrationFailed
from auth.models import AuthResult, User
from auth.store import MembershipStore, default_organisation_name
from auth.tokens import create_access_token, hash_password, verify_dummy_password, verify_password

logger = logging.getLogger("orggate.auth")


def register(
    store: MembershipStore,
    email: str,
    first_name: str,
    last_name: str,
    password: str,
    phone: str | None = None,
) -> AuthResult:
    """Register a user together with their default organisation.

    Field-level validation (email shape, name and password lengths) has
    already happened in the transport layer.

    The email look-ahead below only saves a bcrypt round for the common
    duplicate case. Two concurrent registrations can both pass it; the
    UNIQUE constraint on users.email then rejects the loser inside
    register_user(), whose transaction rolls back the organisation it had
    already inserted.

    Raises:
        DuplicateEmail:     the email is already registered.
        RegistrationFailed: hashing or any store write failed.
    """
    if store.find_user_by_email(email) is not None:
        raise DuplicateEmail()

    try:
        hashed = hash_password(password)
    except ValueError as exc:
        raise RegistrationFailed() from exc

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        hashed_password=hashed,
    )
    try:
        user.id, org_id = store.register_user(user, default_organisation_name(first_name))
    except IntegrityError as exc:
        if store.find_user_by_email(email) is not None:
            logger.info("Registration lost a race for an existing email")
            raise DuplicateEmail() from exc
        logger.exception("Registration failed on an integrity error")
        raise RegistrationFailed() from exc
    except SQLAlchemyError as exc:
        logger.exception("Registration failed")
        raise RegistrationFailed() from exc

    logger.info("Registered user %d with default organisation %d", user.id, org_id)
    token = create_access_token(user.id, user.email)
    return AuthResult(access_token=token, user=user)


def authenticate(store: MembershipStore, email: str, password: str) -> AuthResult:
    """Verify an email/password pair and issue a token.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash

    Both cases raise the same AuthenticationFailed.
    """
    user = store.find_user_by_email(email)
    if user is None:
        verify_dummy_password(password)
        logger.info("Login failed")
        raise AuthenticationFailed()
    if not verify_password(password, user.hashed_password):
        logger.info("Login failed")
        raise AuthenticationFailed()

    token = create_access_token(user.id, user.email)
    return AuthResult(access_token=token, user=user)
