"""The round value and its serializable view."""

from dataclasses import asdict, dataclass, field
from typing import Any

from core.hand import Hand, Outcome, Settlement


@dataclass
class Round:
    """One bet and the two hands played for it."""

    bet: int
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    settlement: Settlement | None = None

    @property
    def outcome(self) -> Outcome | None:
        return self.settlement.outcome if self.settlement else None

    @property
    def payout(self) -> int | None:
        return self.settlement.payout if self.settlement else None

    @property
    def is_settled(self) -> bool:
        return self.settlement is not None


@dataclass(frozen=True)
class CardView:
    """A card as shown to the player. Hidden cards carry no rank or suit."""

    rank: str
    suit: str
    value: int
    is_red: bool = False
    hidden: bool = False


@dataclass(frozen=True)
class HandView:
    cards: list[CardView]
    value: int | None
    is_soft: bool
    is_blackjack: bool
    is_busted: bool


@dataclass(frozen=True)
class RoundView:
    """Snapshot of a session's table for a presentation layer."""

    phase: str
    balance: int
    bet: int
    player_hand: HandView
    dealer_hand: HandView
    message: str
    outcome: str | None
    payout: int | None
    blackjack: bool
    can_bet: bool
    can_deal: bool
    can_hit: bool
    can_stand: bool
    can_new_round: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


HIDDEN_CARD = CardView(rank="?", suit="?", value=0, hidden=True)


def hand_view(hand: Hand) -> HandView:
    """Build the view of a hand, masking its concealed card."""
    cards = [
        HIDDEN_CARD
        if hand.is_concealed(i)
        else CardView(
            rank=str(card.rank),
            suit=str(card.suit),
            value=card.point_value,
            is_red=card.is_red,
        )
        for i, card in enumerate(hand.cards)
    ]
    return HandView(
        cards=cards,
        # The dealer's total stays unknown while the hole card is down
        value=None if hand.has_concealed else hand.value,
        is_soft=hand.is_soft,
        is_blackjack=hand.is_blackjack,
        is_busted=hand.is_busted,
    )


def empty_hand_view() -> HandView:
    return hand_view(Hand())
