"""Login and registration endpoints."""

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException

from api.auth import AuthClient, AuthenticationFailure, get_auth_client
from api.routes.game import forget_game
from api.schemas import (
    AuthResult,
    Credentials,
    LoginResponse,
    RegisterResponse,
    RegistrationProfile,
    UserProfile,
)
from api.session import (
    SESSION_KEY_CREATED_AT,
    SESSION_KEY_LAST_ACTIVITY,
    SESSION_KEY_TOKEN,
    SESSION_KEY_USER,
    create_session,
    delete_session,
    session_user,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _open_session(result: AuthResult) -> str:
    """Store the authenticated identity and backend token in a new session."""
    now = int(time.time())
    return await create_session({
        SESSION_KEY_USER: result.user.model_dump(),
        SESSION_KEY_TOKEN: result.token,
        SESSION_KEY_CREATED_AT: now,
        SESSION_KEY_LAST_ACTIVITY: now,
    })


@router.post("/login")
async def login(
    credentials: Credentials,
    client: Annotated[AuthClient, Depends(get_auth_client)],
) -> LoginResponse:
    """Log in through the auth backend and open a session."""
    try:
        result = await client.login(credentials)
    except AuthenticationFailure:
        raise HTTPException(status_code=401, detail="Authentication failed")

    session_id = await _open_session(result)
    logger.info("User %s logged in", result.user.id)
    return LoginResponse(session_id=session_id, user=result.user)


@router.post("/register")
async def register(
    profile: RegistrationProfile,
    client: Annotated[AuthClient, Depends(get_auth_client)],
) -> RegisterResponse:
    """Register through the auth backend, logging in when it issues a token."""
    try:
        result = await client.register(profile)
    except AuthenticationFailure:
        raise HTTPException(status_code=401, detail="Authentication failed")

    if not result.token:
        return RegisterResponse(login_required=True, user=result.user)

    session_id = await _open_session(result)
    logger.info("User %s registered and logged in", result.user.id)
    return RegisterResponse(login_required=False, session_id=session_id, user=result.user)


@router.get("/me")
async def me(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> UserProfile:
    """Return the logged-in user for a session."""
    user = await session_user(session_id)
    if not user:
        raise HTTPException(status_code=401, detail="Not logged in")
    return UserProfile.model_validate(user)


@router.post("/logout")
async def logout(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> dict[str, str]:
    """Drop the session, its token and its table."""
    forget_game(session_id)
    await delete_session(session_id)
    return {"status": "logged_out"}
