"""Tests for Card and Deck classes."""

from collections import Counter
from random import Random

import pytest

from core.cards import Card, Deck, Rank, Suit


class FixedRandom(Random):
    """Never moves a card: every Fisher-Yates swap is with itself."""

    def randint(self, a, b):
        return b


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
        """Test creating a card."""
        card = Card(Rank.ACE, Suit.SPADES)
        assert card.rank == Rank.ACE
        assert card.suit == Suit.SPADES

    def test_card_immutability(self):
        """Test that cards are immutable."""
        card = Card(Rank.ACE, Suit.SPADES)
        with pytest.raises(AttributeError):
            card.rank = Rank.KING

    def test_card_point_value(self):
        """Test card blackjack values."""
        assert Card(Rank.TWO, Suit.HEARTS).point_value == 2
        assert Card(Rank.TEN, Suit.HEARTS).point_value == 10
        assert Card(Rank.JACK, Suit.HEARTS).point_value == 10
        assert Card(Rank.QUEEN, Suit.HEARTS).point_value == 10
        assert Card(Rank.KING, Suit.HEARTS).point_value == 10
        assert Card(Rank.ACE, Suit.HEARTS).point_value == 11

    def test_card_colour(self):
        assert Card(Rank.FIVE, Suit.HEARTS).is_red
        assert Card(Rank.FIVE, Suit.DIAMONDS).is_red
        assert not Card(Rank.FIVE, Suit.SPADES).is_red
        assert not Card(Rank.FIVE, Suit.CLUBS).is_red

    def test_card_is_ace(self):
        """Test ace detection."""
        assert Card(Rank.ACE, Suit.SPADES).is_ace
        assert not Card(Rank.KING, Suit.SPADES).is_ace

    def test_card_from_string(self):
        """Test creating cards from strings."""
        assert Card.from_string("AS") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("2H") == Card(Rank.TWO, Suit.HEARTS)
        assert Card.from_string("10D") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("TD") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("kc") == Card(Rank.KING, Suit.CLUBS)

    def test_card_from_string_with_symbols(self):
        """Test creating cards from strings with suit symbols."""
        assert Card.from_string("A♠") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("K♥") == Card(Rank.KING, Suit.HEARTS)

    @pytest.mark.parametrize("text", ["", "A", "1S", "AX", "11H"])
    def test_card_from_string_invalid(self, text):
        with pytest.raises(ValueError):
            Card.from_string(text)

    def test_card_str(self):
        """Test string representation."""
        assert str(Card(Rank.ACE, Suit.SPADES)) == "A♠"
        assert str(Card(Rank.TEN, Suit.HEARTS)) == "10♥"

    def test_card_equality(self):
        """Cards are equal exactly when rank and suit match."""
        assert Card(Rank.ACE, Suit.SPADES) == Card(Rank.ACE, Suit.SPADES)
        assert Card(Rank.ACE, Suit.SPADES) != Card(Rank.ACE, Suit.HEARTS)
        assert Card(Rank.ACE, Suit.SPADES) != Card(Rank.KING, Suit.SPADES)

    def test_card_hash(self):
        """Test that equal cards hash alike."""
        cards = {Card(Rank.ACE, Suit.SPADES), Card(Rank.ACE, Suit.SPADES)}
        assert len(cards) == 1


class TestDeck:
    """Tests for the Deck class."""

    def test_deck_creation(self, deck):
        """A new deck holds 52 cards in its first epoch."""
        assert len(deck) == 52
        assert deck.cards_remaining == 52
        assert deck.epoch == 1

    def test_deck_has_all_cards(self, deck):
        """Test deck contains every card exactly once."""
        assert set(deck) == {Card(rank, suit) for suit in Suit for rank in Rank}
        assert len(set(deck)) == 52

    def test_build_order_before_shuffle(self):
        """Cards are laid out suit by suit, ace to king."""
        deck = Deck(rng=FixedRandom())
        cards = list(deck)
        assert cards[0] == Card(Rank.ACE, Suit.SPADES)
        assert cards[12] == Card(Rank.KING, Suit.SPADES)
        assert cards[13] == Card(Rank.ACE, Suit.HEARTS)
        assert cards[-1] == Card(Rank.KING, Suit.CLUBS)

    def test_deck_draws_from_top(self):
        deck = Deck(rng=FixedRandom())
        assert deck.draw() == Card(Rank.KING, Suit.CLUBS)
        assert deck.draw() == Card(Rank.QUEEN, Suit.CLUBS)
        assert len(deck) == 50

    def test_seeded_decks_match(self):
        """Test the same seed gives the same order."""
        assert list(Deck(rng=Random(7))) == list(Deck(rng=Random(7)))
        assert list(Deck(rng=Random(7))) != list(Deck(rng=Random(8)))

    def test_deck_shuffle_keeps_cards(self, deck):
        before = list(deck)
        deck.shuffle()
        assert sorted(map(repr, deck)) == sorted(map(repr, before))

    def test_no_card_drawn_twice_in_an_epoch(self, deck):
        """Drawn and remaining cards always partition the full deck."""
        drawn = [deck.draw() for _ in range(30)]
        assert len(set(drawn)) == 30
        assert set(drawn).isdisjoint(set(deck))
        assert len(set(drawn) | set(deck)) == 52

    def test_deck_draw_all(self, deck):
        cards = [deck.draw() for _ in range(52)]
        assert len(set(cards)) == 52
        assert len(deck) == 0
        assert deck.epoch == 1

    def test_draw_from_empty_deck_rebuilds(self, deck):
        """Drawing from an exhausted deck starts a new epoch instead of failing."""
        for _ in range(52):
            deck.draw()

        card = deck.draw()

        assert isinstance(card, Card)
        assert deck.epoch == 2
        assert len(deck) == 51

    def test_rebuild_callback(self, rng):
        rebuilt = []
        deck = Deck(rng=rng, on_rebuild=rebuilt.append)
        for _ in range(52):
            deck.draw()
        assert rebuilt == []

        deck.draw()
        assert rebuilt == [deck]

    def test_explicit_build_resets(self, deck):
        for _ in range(10):
            deck.draw()
        deck.build()
        assert len(deck) == 52
        assert deck.epoch == 2


class TestShuffleDistribution:
    """The shuffle must not favour any position."""

    TRIALS = 5200

    def test_card_lands_uniformly(self):
        """Ace of spades should land in each of the 52 slots about equally often."""
        rng = Random(1234)
        ace = Card(Rank.ACE, Suit.SPADES)
        positions = Counter()

        deck = Deck(rng=rng)
        for _ in range(self.TRIALS):
            deck.build()
            positions[list(deck).index(ace)] += 1

        expected = self.TRIALS / 52
        assert len(positions) == 52
        # ~5 standard deviations either side of the expected count
        assert all(abs(count - expected) < 50 for count in positions.values())

    def test_top_card_uniform(self):
        """Every card should reach the top of the deck about equally often."""
        rng = Random(99)
        tops = Counter()

        deck = Deck(rng=rng)
        for _ in range(self.TRIALS):
            deck.build()
            tops[deck.draw()] += 1

        expected = self.TRIALS / 52
        assert len(tops) == 52
        assert all(abs(count - expected) < 50 for count in tops.values())
