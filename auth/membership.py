"""
auth/membership.py -- Membership-scoped access to users and organisations.

Every read of organisation data goes through a membership check keyed on the
caller's Identity. A caller who is not a member of an organisation gets
NotMember whether or not the organisation exists.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import NotMember, OrganisationNotFound, UserNotFound
from auth.models import Identity, Membership, Organisation, User
from auth.store import MembershipStore

logger = logging.getLogger("orggate.auth")

# Row ids are SQLite INTEGERs: signed 64-bit.
_MAX_ID = 2**63 - 1


def parse_id(value: int | str) -> int | None:
    """Return value as a storable row id, or None if it cannot name a row.

    Strings must be plain ASCII digits, so "+12", " 12" and "1_2" are
    rejected. Anything outside 1.._MAX_ID is rejected before it reaches the
    driver, which cannot bind integers wider than 64 bits.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not (value.isascii() and value.isdigit()) or len(value) > 19:
            return None
        value = int(value)
    if not isinstance(value, int) or not 0 < value <= _MAX_ID:
        return None
    return value


def get_user(store: MembershipStore, user_id: int) -> User:
    key = parse_id(user_id)
    user = store.get_user_by_id(key) if key is not None else None
    if user is None:
        raise UserNotFound()
    return user


def list_organisations_for(store: MembershipStore, identity: Identity) -> list[Organisation]:
    """Return every organisation the caller belongs to.

    Raises UserNotFound if the token outlived its user.
    """
    get_user(store, identity.user_id)
    return store.list_organisations_for_user(identity.user_id)


def get_organisation_for(store: MembershipStore, identity: Identity, org_id: int | str) -> Organisation:
    """Return one organisation if, and only if, the caller is a member.

    org_id may arrive as the raw path segment; anything parse_id() rejects
    cannot name an organisation and is reported as NotMember too.
    """
    org_key = parse_id(org_id)
    user_key = parse_id(identity.user_id)
    if org_key is None or user_key is None:
        raise NotMember()
    org = store.get_organisation_for_member(user_key, org_key)
    if org is None:
        raise NotMember()
    return org


def create_organisation(
    store: MembershipStore,
    identity: Identity,
    name: str,
    description: str | None = None,
) -> Organisation:
    """Create an organisation with the caller as its first member."""
    get_user(store, identity.user_id)
    org = Organisation(name=name, description=description)
    org.id = store.create_organisation_with_member(org, identity.user_id)
    logger.info("User %d created organisation %d", identity.user_id, org.id)
    return org


def add_user_to_organisation(store: MembershipStore, target_user_id: int, org_id: int) -> Membership:
    """Make target_user_id a member of org_id.

    No caller identity is checked here: whoever reaches this operation may
    add any user to any organisation. Adding an existing member returns the
    existing membership.
    """
    org_id = parse_id(org_id)
    if org_id is None or store.get_organisation(org_id) is None:
        raise OrganisationNotFound()
    target_user_id = get_user(store, target_user_id).id

    existing = store.find_membership(target_user_id, org_id)
    if existing is not None:
        return existing
    try:
        membership = store.create_membership(target_user_id, org_id)
    except IntegrityError:
        # Either a concurrent add won, or one side was deleted in between.
        membership = store.find_membership(target_user_id, org_id)
        if membership is None:
            raise
        return membership
    logger.info("Added user %d to organisation %d", target_user_id, org_id)
    return membership
