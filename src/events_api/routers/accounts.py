from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from ..auth import create_token, get_current_user, hash_password, verify_password
from ..errors import AuthenticationError, ValidationError
from ..models import SessionUser
from ..repositories import Repository, get_repository
from ..schemas import LoginRequest, LoginResponse, MeResponse, RegisterRequest, RegisterResponse
from ..utils import normalize_role, normalize_username

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


# PUBLIC_INTERFACE
@router.post(
    "/auth/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account. The first account ever registered becomes the admin.",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Username missing or password too short"},
        409: {"description": "Username already taken"},
    },
)
def register(payload: RegisterRequest, repo: Repository = Depends(get_repository)) -> RegisterResponse:
    display = payload.username.strip()
    if not display or len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Username and {MIN_PASSWORD_LENGTH}+ character password required.")

    role = "admin" if repo.count_admins() == 0 else "user"
    repo.create_user(display, normalize_username(display), hash_password(payload.password), role)
    logger.info("Registered %s as %s", display, role)
    return RegisterResponse(ok=True, role=role)


# PUBLIC_INTERFACE
@router.post(
    "/auth/login",
    response_model=LoginResponse,
    summary="Log In",
    description="Exchange credentials for a bearer token.",
    responses={401: {"description": "Invalid credentials"}},
)
def login(payload: LoginRequest, repo: Repository = Depends(get_repository)) -> LoginResponse:
    user = repo.fetch_user_by_username(normalize_username(payload.username))
    if user is None or not verify_password(payload.password, user["password_hash"]):
        raise AuthenticationError("Invalid credentials.")

    token = create_token()
    repo.create_session(token, user["id"])
    logger.info("User %s logged in", user["username_display"])
    return LoginResponse(token=token, username=user["username_display"], role=normalize_role(user["role"]))


# PUBLIC_INTERFACE
@router.post("/auth/logout", summary="Log Out", responses={401: {"description": "Not logged in"}})
def logout(
    user: SessionUser = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> dict:
    repo.delete_session(user["token"])
    return {"ok": True}


# PUBLIC_INTERFACE
@router.get("/me", response_model=MeResponse, summary="Current User", responses={401: {"description": "Not logged in"}})
def me(
    user: SessionUser = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> MeResponse:
    return MeResponse(
        username=user["username_display"],
        role=user["role"],
        completed=repo.completed_event_ids(user["user_id"]),
    )
