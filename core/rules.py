"""Table rules for the single-deck game."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TableRules:
    """
    Rules and pacing of a blackjack table.

    Payout ratios are fixed (see core.hand); only limits and display pauses
    vary between tables.
    """

    # Betting limits
    min_bet: int = 10

    # Dealer draws while below this total
    dealer_stand_value: int = 17

    # Display pauses in seconds
    natural_delay: float = 1.0  # before auto-standing on a natural
    twenty_one_delay: float = 0.5  # before auto-standing after hitting to 21
    dealer_step_delay: float = 1.5  # before each dealer decision

    def __post_init__(self) -> None:
        """Validate rule values."""
        if self.min_bet < 1:
            raise ValueError("min_bet must be at least 1")
        if not 2 <= self.dealer_stand_value <= 21:
            raise ValueError("dealer_stand_value must be between 2 and 21")
        if min(self.natural_delay, self.twenty_one_delay, self.dealer_step_delay) < 0:
            raise ValueError("delays cannot be negative")

    @classmethod
    def instant(cls, **overrides) -> "TableRules":
        """Rules without display pauses, for simulations and tests."""
        return cls(
            natural_delay=0.0,
            twenty_one_delay=0.0,
            dealer_step_delay=0.0,
            **overrides,
        )
