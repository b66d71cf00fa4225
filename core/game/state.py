"""Round phase enumeration."""

from enum import Enum, auto


class RoundPhase(Enum):
    """
    Round state machine phases.

    Flow: IDLE → BET_PLACED → DEALING → PLAYER_TURN → DEALER_TURN → SETTLED → IDLE
    """

    # No round in progress
    IDLE = auto()

    # Bet chosen, waiting for the deal
    BET_PLACED = auto()

    # Cards being dealt
    DEALING = auto()

    # Player may hit or stand
    PLAYER_TURN = auto()

    # Dealer draws to 17
    DEALER_TURN = auto()

    # Outcome and payout known, waiting for a new round
    SETTLED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
