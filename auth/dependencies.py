"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_identity() reads the Authorization header and hands it to the pure
guard in auth/guard.py. Unauthenticated and Forbidden propagate as domain
errors; api/main.py maps them to 401 and 403.

get_store() returns the process-wide MembershipStore created in the app
lifespan, so handlers receive it as an explicit argument.

Layer rule: auth/dependencies.py may import from fastapi because this module
is part of the FastAPI dependency injection system. It does not import api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.guard import authenticate_header
from auth.models import Identity
from auth.store import MembershipStore


def get_store(request: Request) -> MembershipStore:
    return request.app.state.store


def get_identity(request: Request) -> Identity:
    """Require a valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_identity)): ...
    """
    return authenticate_header(request.headers.get("Authorization"))
