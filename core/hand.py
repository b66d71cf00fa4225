"""Hand scoring and round settlement for blackjack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from core.cards import Card

BLACKJACK = 21

# Payouts include the returned stake
WIN_PAYOUT = 2
BLACKJACK_PAYOUT = 2.5
TIE_PAYOUT = 1


@dataclass
class Hand:
    """
    A blackjack hand.

    Only the dealer's hole card is ever concealed. A concealed card is kept
    in the hand but ignored for scoring until revealed.
    """

    cards: list[Card] = field(default_factory=list)
    concealed_index: int | None = None

    def add_card(self, card: Card, concealed: bool = False) -> None:
        """Add a card to the hand, optionally face down."""
        self.cards.append(card)
        if concealed:
            self.concealed_index = len(self.cards) - 1

    def reveal(self) -> Card | None:
        """Turn the concealed card face up and return it."""
        if self.concealed_index is None:
            return None
        card = self.cards[self.concealed_index]
        self.concealed_index = None
        return card

    def is_concealed(self, index: int) -> bool:
        return index == self.concealed_index

    @property
    def has_concealed(self) -> bool:
        return self.concealed_index is not None

    @property
    def visible_cards(self) -> list[Card]:
        """Return the face-up cards."""
        return [c for i, c in enumerate(self.cards) if i != self.concealed_index]

    @property
    def value(self) -> int:
        return score(self)

    @property
    def is_soft(self) -> bool:
        return is_soft(self)

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural (21 with exactly 2 face-up cards)."""
        return len(self.cards) == 2 and not self.has_concealed and self.value == BLACKJACK

    @property
    def is_busted(self) -> bool:
        return self.value > BLACKJACK

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(
            "??" if self.is_concealed(i) else str(card) for i, card in enumerate(self.cards)
        )
        if self.is_busted:
            return f"{cards_str} (BUST)"
        if self.is_blackjack:
            return f"{cards_str} (BLACKJACK)"
        if self.is_soft:
            return f"{cards_str} (soft {self.value})"
        return f"{cards_str} ({self.value})"


def _total_and_soft_aces(hand: Hand) -> tuple[int, int]:
    total = 0
    aces = 0

    for card in hand.visible_cards:
        if card.is_ace:
            aces += 1
        total += card.point_value

    # Demote aces from 11 to 1 as needed
    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total, aces


def score(hand: Hand) -> int:
    """
    Calculate the best blackjack value of a hand.

    Aces start at 11 and are demoted to 1 one at a time while the total is
    over 21. Concealed cards count as absent.
    """
    return _total_and_soft_aces(hand)[0]


def is_soft(hand: Hand) -> bool:
    """Check if the hand still counts an ace as 11."""
    return _total_and_soft_aces(hand)[1] > 0


class Outcome(Enum):
    """Round outcome from the player's point of view."""

    WIN = "win"
    LOSE = "lose"
    TIE = "tie"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Settlement:
    """Outcome of a round and the amount credited back to the player."""

    outcome: Outcome
    payout: int
    blackjack: bool = False
    dealer_busted: bool = False
    player_busted: bool = False


def settle(player_hand: Hand, dealer_hand: Hand, bet: int) -> Settlement:
    """
    Compare final hands and compute the payout for a bet.

    A player bust loses regardless of the dealer. A natural pays 2.5x unless
    the dealer also finishes on 21, which is checked after the dealer has
    played.
    """
    player_value = player_hand.value
    dealer_value = dealer_hand.value

    if player_value > BLACKJACK:
        return Settlement(Outcome.LOSE, 0, player_busted=True)

    if player_hand.is_blackjack and dealer_value != BLACKJACK:
        return Settlement(
            Outcome.WIN,
            int(bet * BLACKJACK_PAYOUT),
            blackjack=True,
            dealer_busted=dealer_value > BLACKJACK,
        )

    if dealer_value > BLACKJACK:
        return Settlement(Outcome.WIN, bet * WIN_PAYOUT, dealer_busted=True)
    if player_value > dealer_value:
        return Settlement(Outcome.WIN, bet * WIN_PAYOUT)
    if player_value < dealer_value:
        return Settlement(Outcome.LOSE, 0)
    return Settlement(Outcome.TIE, bet * TIE_PAYOUT)
