"""Pydantic schemas for API requests and responses."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# Account schemas
class RegisterRequest(BaseModel):
    """Request to create an account."""

    model_config = ConfigDict(populate_by_name=True)

    username: str
    email: str
    password: str
    birth_date: date = Field(..., alias="birthDate")
    phone: str


class LoginRequest(BaseModel):
    """Request to log in."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AccountResponse(BaseModel):
    """Public account data."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    email: str
    balance: int


class LoginResponse(BaseModel):
    success: bool = True
    session_id: str
    user: AccountResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class SessionResponse(BaseModel):
    user: AccountResponse


# Game schemas
class BetRequest(BaseModel):
    """Request to place a bet."""

    amount: int = Field(..., description="Bet amount")


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand"]


class NewGameResponse(BaseModel):
    session_id: str
    balance: int


class CardResponse(BaseModel):
    """Card representation. Hidden cards have rank and suit '?'."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int
    is_red: bool
    hidden: bool


class HandResponse(BaseModel):
    """Hand representation."""

    model_config = ConfigDict(from_attributes=True)

    cards: list[CardResponse]
    value: int | None
    is_soft: bool
    is_blackjack: bool
    is_busted: bool


class GameStateResponse(BaseModel):
    """Current table state."""

    model_config = ConfigDict(from_attributes=True)

    phase: str
    balance: int
    bet: int
    player_hand: HandResponse
    dealer_hand: HandResponse
    message: str
    outcome: Literal["win", "lose", "tie"] | None
    payout: int | None
    blackjack: bool
    can_bet: bool
    can_deal: bool
    can_hit: bool
    can_stand: bool
    can_new_round: bool


class RoundRecordResponse(BaseModel):
    """A past round."""

    outcome: Literal["win", "lose", "tie"]
    bet: int
    balance_after: int
    created_at: datetime


class HistoryResponse(BaseModel):
    history: list[RoundRecordResponse]
