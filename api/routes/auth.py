"""Account API endpoints: register, login, logout and session restore."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from api.accounts import SessionGateway
from api.ratelimit import RATE_LIMIT, limiter
from api.routes.game import drop_game, ensure_no_active_round
from api.schemas import (
    AccountResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    SessionResponse,
)
from api.session import create_session, delete_session, optional_session, require_session
from core.errors import AlreadyExists, InvalidCredentials, ValidationFailed
from core.gateway import Credentials, ProfileFields

router = APIRouter()


@router.post("/register")
@limiter.limit(RATE_LIMIT)
async def register(request: Request, body: RegisterRequest) -> MessageResponse:
    """Create an account with the starting balance."""
    gateway = SessionGateway()
    profile = ProfileFields(
        username=body.username,
        email=body.email,
        password=body.password,
        birth_date=body.birth_date,
        phone=body.phone,
    )
    try:
        await gateway.register(profile)
    except ValidationFailed as exc:
        raise HTTPException(status_code=400, detail={"field": exc.field, "reason": exc.reason})
    except AlreadyExists as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return MessageResponse(message="Account created")


@router.post("/login")
@limiter.limit(RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    session_id: Annotated[str | None, Depends(optional_session)],
) -> LoginResponse:
    """Log in, binding the account to the current or a new session."""
    if session_id is None:
        session_id = await create_session()
    else:
        ensure_no_active_round(session_id)

    gateway = SessionGateway(session_id)
    try:
        account = await gateway.authenticate(Credentials(body.email, body.password))
    except InvalidCredentials as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    # The next game on this session starts from the account balance
    drop_game(session_id)
    return LoginResponse(session_id=session_id, user=AccountResponse.model_validate(account))


@router.post("/logout")
async def logout(
    session_id: Annotated[str, Depends(require_session)],
) -> MessageResponse:
    """End the session."""
    ensure_no_active_round(session_id)
    await SessionGateway(session_id).logout()
    await delete_session(session_id)
    drop_game(session_id)
    return MessageResponse(message="Logged out")


@router.get("/session")
async def current_session(
    session_id: Annotated[str, Depends(require_session)],
) -> SessionResponse:
    """Restore the logged-in account of a returning session."""
    account = await SessionGateway(session_id).get_session()
    if account is None:
        raise HTTPException(status_code=401, detail="No active session")
    return SessionResponse(user=AccountResponse.model_validate(account))
