"""
api/routes/v1/users.py -- User record lookup.

Routes:
  GET /api/users/{user_id} -- public projection of one user (requires auth)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import UserOut, UserResponse
from auth.dependencies import get_identity, get_store
from auth.membership import get_user
from auth.models import Identity
from auth.store import MembershipStore

router = APIRouter()


@router.get("/users/{user_id}", response_model=UserResponse, response_model_by_alias=True)
def read_user(
    user_id: int,
    identity: Identity = Depends(get_identity),
    store: MembershipStore = Depends(get_store),
) -> UserResponse:
    """Return the user record for user_id. Any authenticated caller may read it."""
    return UserResponse(data=UserOut.from_user(get_user(store, user_id)))
