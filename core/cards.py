"""Card and Deck classes - immutable card representations."""

from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Callable, Iterator


class Suit(Enum):
    """Card suits, in deck construction order."""

    SPADES = "♠"
    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"

    def __str__(self) -> str:
        return self.value

    @property
    def is_red(self) -> bool:
        """Hearts and diamonds are red."""
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(Enum):
    """Card ranks, in deck construction order."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    def __str__(self) -> str:
        return self.value

    @property
    def point_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


_SUIT_ALIASES = {
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card. Two cards are equal when suit and rank match."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def point_value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.point_value

    @property
    def is_red(self) -> bool:
        return self.suit.is_red

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like 'AS', '10♥', 'kd'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str, suit_str = s[:-1], s[-1]
        if rank_str == "T":
            rank_str = "10"

        try:
            rank = Rank(rank_str)
        except ValueError:
            raise ValueError(f"Invalid rank: {rank_str}") from None
        if suit_str not in _SUIT_ALIASES:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank, _SUIT_ALIASES[suit_str])


class Deck:
    """
    A single 52-card deck.

    Drawing from an empty deck silently builds and shuffles a fresh set of
    52 cards, so a draw never fails. Each build starts a new epoch; within
    one epoch no card is ever handed out twice.
    """

    def __init__(
        self,
        rng: Random | None = None,
        on_rebuild: Callable[["Deck"], None] | None = None,
    ) -> None:
        """
        Initialize and build a shuffled deck.

        Args:
            rng: Random number generator for shuffling
            on_rebuild: Called after an exhausted deck has been rebuilt
        """
        self._rng = rng or Random()
        self._on_rebuild = on_rebuild
        self._cards: list[Card] = []
        self._epoch = 0
        self.build()

    def build(self) -> None:
        """Replace the contents with all 52 cards (suits x ranks), then shuffle."""
        self._cards = [Card(rank, suit) for suit in Suit for rank in Rank]
        self._epoch += 1
        self.shuffle()

    def shuffle(self) -> None:
        """Fisher-Yates shuffle in place."""
        cards = self._cards
        for i in range(len(cards) - 1, 0, -1):
            j = self._rng.randint(0, i)
            cards[i], cards[j] = cards[j], cards[i]

    def draw(self) -> Card:
        """Draw the top (last) card, rebuilding first if the deck is exhausted."""
        if not self._cards:
            self.build()
            if self._on_rebuild is not None:
                self._on_rebuild(self)
        return self._cards.pop()

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def epoch(self) -> int:
        """Return how many times the deck has been built."""
        return self._epoch
