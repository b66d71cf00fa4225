"""Pytest fixtures for blackjack casino tests."""

import os

# Fast, deterministic settings; must be set before config is imported
os.environ.setdefault("GAME_DELAY_SCALE", "0")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from random import Random

import pytest

from core.cards import Card, Deck, Rank, Suit
from core.game import BlackjackGame
from core.hand import Hand
from core.rules import TableRules
from tests.helpers import RecordingSleep, make_hand


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A freshly built, shuffled deck."""
    return Deck(rng=rng)


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    hand = Hand()
    hand.add_card(Card(Rank.ACE, Suit.SPADES))
    hand.add_card(Card(Rank.KING, Suit.HEARTS))
    return hand


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10S", "6H", "KC")


@pytest.fixture
def rules():
    """Default table rules without display pauses."""
    return TableRules.instant()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def game(rules, rng, sleep):
    """A game with a 1000 balance and a seeded deck."""
    return BlackjackGame(rules=rules, balance=1000, rng=rng, sleep=sleep)


@pytest.fixture
def events(game):
    """Every event the game emits, in order."""
    received = []
    game.subscribe(received.append)
    return received
