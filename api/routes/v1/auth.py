"""
api/routes/v1/auth.py -- Registration and login endpoints.

Routes:
  POST /auth/register -- create user + default organisation; 201 with token
  POST /auth/login    -- email/password login; 200 with token

Both routes are public. They are plain `def` handlers so FastAPI runs them in
its thread pool: bcrypt work and store I/O never block the event loop.

Security:
  authenticate() equalizes timing between unknown-email and wrong-password.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import AuthData, AuthResponse, LoginRequest, RegisterRequest, UserOut
from auth.dependencies import get_store
from auth.flows import authenticate, register
from auth.models import AuthResult
from auth.store import MembershipStore

router = APIRouter()


def _token_response(status_code: int, message: str, result: AuthResult) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            message=message,
            data=AuthData(access_token=result.access_token, user=UserOut.from_user(result.user)),
        ).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register_user(body: RegisterRequest, store: MembershipStore = Depends(get_store)) -> JSONResponse:
    """Register a user, their default organisation and the membership linking them."""
    result = register(
        store,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        password=body.password,
        phone=body.phone,
    )
    return _token_response(201, "Registration successful", result)


@router.post("/auth/login", response_model=AuthResponse)
def login(body: LoginRequest, store: MembershipStore = Depends(get_store)) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password produce the same 401.
    """
    result = authenticate(store, body.email, body.password)
    return _token_response(200, "Login successful", result)
