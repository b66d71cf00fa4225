"""Helpers shared by the test modules."""

from core.cards import Card, Deck
from core.hand import Hand


def make_hand(*cards: str) -> Hand:
    """Build a hand from card strings like 'AS', '10H'."""
    hand = Hand()
    for card in cards:
        hand.add_card(Card.from_string(card))
    return hand


def stack_deck(deck: Deck, *cards: str) -> None:
    """Replace the deck's contents so the given cards are drawn in order."""
    deck._cards = [Card.from_string(c) for c in reversed(cards)]


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested pauses."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
