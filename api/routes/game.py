"""Game API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from api.accounts import SessionGateway
from api.schemas import (
    ActionRequest,
    BetRequest,
    GameStateResponse,
    HistoryResponse,
    NewGameResponse,
    RoundRecordResponse,
)
from api.session import create_session, get_session, optional_session, require_session
from config import config
from core.errors import InvalidBet, NotAuthenticated
from core.game import BlackjackGame, RoundPhase
from core.rules import TableRules

logger = logging.getLogger(__name__)

router = APIRouter()

# One game (and so at most one active round) per session
_games: dict[str, BlackjackGame] = {}

ACTIVE_PHASES = (RoundPhase.DEALING, RoundPhase.PLAYER_TURN, RoundPhase.DEALER_TURN)


def table_rules() -> TableRules:
    """Table rules from the game configuration."""
    return TableRules(
        min_bet=config.game.min_bet,
        dealer_stand_value=config.game.dealer_stand_value,
        natural_delay=config.game.natural_delay,
        twenty_one_delay=config.game.twenty_one_delay,
        dealer_step_delay=config.game.dealer_step_delay,
    )


async def _create_game(session_id: str) -> BlackjackGame:
    """Start a table for a session: account balance if logged in, else a guest stake."""
    gateway = SessionGateway(session_id)
    account = await gateway.get_session()
    if account is None:
        return BlackjackGame(rules=table_rules(), balance=config.game.initial_balance)
    return BlackjackGame(rules=table_rules(), balance=account.balance, reporter=gateway)


async def get_game(session_id: str) -> BlackjackGame:
    """Get or create the game for the session."""
    if session_id not in _games:
        game = await _create_game(session_id)
        # Another request may have opened the table while we awaited
        return _games.setdefault(session_id, game)
    return _games[session_id]


def drop_game(session_id: str) -> None:
    """Forget a session's game; the next request starts a fresh table."""
    _games.pop(session_id, None)


def ensure_no_active_round(session_id: str) -> None:
    """Refuse to replace a table while its round holds a stake."""
    game = _games.get(session_id)
    if game is not None and game.phase in ACTIVE_PHASES:
        raise HTTPException(status_code=409, detail="Finish the current round first")


async def evict_expired_games() -> int:
    """Drop tables whose session has expired. Returns how many were dropped."""
    expired = [sid for sid in list(_games) if await get_session(sid) is None]
    for sid in expired:
        drop_game(sid)
    if expired:
        logger.info("Evicted %d tables of expired sessions", len(expired))
    return len(expired)


def game_state_response(game: BlackjackGame) -> GameStateResponse:
    """Convert the game's view to a response."""
    return GameStateResponse.model_validate(game.view())


@router.post("/new")
async def new_game(
    session_id: Annotated[str | None, Depends(optional_session)],
) -> NewGameResponse:
    """Open a fresh table, creating a guest session when none is given."""
    if session_id is None:
        session_id = await create_session()

    ensure_no_active_round(session_id)
    await evict_expired_games()

    drop_game(session_id)
    game = await get_game(session_id)
    return NewGameResponse(session_id=session_id, balance=game.balance)


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Depends(require_session)],
) -> GameStateResponse:
    """Get current table state."""
    game = await get_game(session_id)
    return game_state_response(game)


@router.post("/bet")
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Depends(require_session)],
) -> GameStateResponse:
    """Choose the bet for the next round."""
    game = await get_game(session_id)
    try:
        game.bet(request.amount)
    except InvalidBet as exc:
        raise HTTPException(status_code=400, detail=exc.reason)
    return game_state_response(game)


@router.post("/deal")
async def deal(
    session_id: Annotated[str, Depends(require_session)],
) -> GameStateResponse:
    """Debit the bet and deal. A natural plays out to settlement."""
    game = await get_game(session_id)
    try:
        await game.deal()
    except InvalidBet as exc:
        raise HTTPException(status_code=400, detail=exc.reason)
    return game_state_response(game)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Depends(require_session)],
) -> GameStateResponse:
    """Hit or stand. Actions outside the player's turn are ignored."""
    game = await get_game(session_id)

    actions = {
        "hit": game.hit,
        "stand": game.stand,
    }
    if not await actions[request.action]():
        logger.debug("Ignored %s in phase %s", request.action, game.phase.name)

    return game_state_response(game)


@router.post("/new-round")
async def new_round(
    session_id: Annotated[str, Depends(require_session)],
) -> GameStateResponse:
    """Clear a settled round."""
    game = await get_game(session_id)
    game.new_round()
    return game_state_response(game)


@router.get("/history")
async def history(
    session_id: Annotated[str, Depends(require_session)],
    limit: Annotated[int, Query(ge=1, le=100)] = config.game.history_limit,
) -> HistoryResponse:
    """Past rounds of the logged-in account, most recent first."""
    try:
        records = await SessionGateway(session_id).fetch_history(limit)
    except NotAuthenticated as exc:
        raise HTTPException(status_code=401, detail=str(exc))

    return HistoryResponse(
        history=[
            RoundRecordResponse(
                outcome=r.outcome.value,
                bet=r.bet,
                balance_after=r.balance_after,
                created_at=r.created_at,
            )
            for r in records
        ]
    )
