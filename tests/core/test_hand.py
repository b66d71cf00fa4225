"""Tests for hand scoring and round settlement."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from core.cards import Card, Rank, Suit
from core.hand import Hand, Outcome, is_soft, score, settle
from tests.helpers import make_hand

cards = st.builds(Card, st.sampled_from(Rank), st.sampled_from(Suit))


class TestScore:
    """Tests for hand values."""

    def test_empty_hand(self, empty_hand):
        assert score(empty_hand) == 0
        assert not empty_hand.is_busted

    def test_hard_total(self, hard_16_hand):
        assert hard_16_hand.value == 16
        assert not hard_16_hand.is_soft

    def test_soft_total(self, soft_17_hand):
        assert soft_17_hand.value == 17
        assert soft_17_hand.is_soft

    @pytest.mark.parametrize(
        ("cards", "expected"),
        [
            (["AS", "AH"], 12),
            (["AS", "9H"], 20),
            (["AS", "AH", "9C"], 21),
            (["AS", "AH", "AC"], 13),
            (["AS", "AH", "AC", "9D"], 12),
            (["AS", "KH"], 21),
            (["AS", "6H", "10C"], 17),
            (["10S", "6H", "KC"], 26),
        ],
    )
    def test_ace_adjustment(self, cards, expected):
        """Aces drop from 11 to 1 one at a time while the total is over 21."""
        assert score(make_hand(*cards)) == expected

    def test_soft_becomes_hard(self):
        hand = make_hand("AS", "6H")
        assert is_soft(hand)

        hand.add_card(Card(Rank.TEN, Suit.CLUBS))
        assert hand.value == 17
        assert not is_soft(hand)

    def test_concealed_card_ignored(self):
        """A face-down card counts as absent until revealed."""
        hand = make_hand("10S")
        hand.add_card(Card(Rank.SEVEN, Suit.HEARTS), concealed=True)

        assert hand.value == 10
        assert hand.has_concealed
        assert hand.visible_cards == [Card(Rank.TEN, Suit.SPADES)]
        assert len(hand) == 2

        assert hand.reveal() == Card(Rank.SEVEN, Suit.HEARTS)
        assert hand.value == 17
        assert not hand.has_concealed
        assert hand.reveal() is None

    def test_concealed_ace_not_blackjack(self):
        hand = make_hand("KS")
        hand.add_card(Card(Rank.ACE, Suit.HEARTS), concealed=True)
        assert not hand.is_blackjack

        hand.reveal()
        assert hand.is_blackjack

    def test_blackjack_detection(self, blackjack_hand):
        assert blackjack_hand.is_blackjack
        assert not make_hand("7S", "7H", "7C").is_blackjack

    def test_bust_detection(self, bust_hand):
        assert bust_hand.is_busted
        assert bust_hand.value == 26

    def test_hand_str(self, blackjack_hand):
        assert str(blackjack_hand) == "A♠ K♥ (BLACKJACK)"
        hand = make_hand("10S")
        hand.add_card(Card(Rank.SEVEN, Suit.HEARTS), concealed=True)
        assert str(hand) == "10♠ ?? (10)"

    @given(st.lists(cards, max_size=12))
    def test_score_bounds(self, drawn):
        """A score never drops below the all-aces-as-one total."""
        hand = Hand(cards=list(drawn))
        minimum = sum(1 if c.is_ace else c.point_value for c in drawn)
        maximum = sum(c.point_value for c in drawn)

        assert minimum <= score(hand) <= maximum
        if score(hand) > 21:
            assert score(hand) == minimum
            assert not is_soft(hand)

    @given(st.lists(cards, min_size=1, max_size=8), st.data())
    def test_concealed_card_never_counts(self, drawn, data):
        index = data.draw(st.integers(0, len(drawn) - 1))
        hand = Hand(cards=list(drawn), concealed_index=index)
        visible = Hand(cards=[c for i, c in enumerate(drawn) if i != index])

        assert score(hand) == score(visible)


class TestSettle:
    """Tests for round settlement and payouts."""

    @pytest.mark.parametrize(
        ("player", "dealer", "outcome", "payout"),
        [
            (["10S", "9H"], ["10D", "8C"], Outcome.WIN, 200),
            (["10S", "6H", "KC"], ["10D", "7C"], Outcome.LOSE, 0),
            (["AS", "KH"], ["10D", "9C"], Outcome.WIN, 250),
            (["AS", "KH"], ["AD", "KC"], Outcome.TIE, 100),
            (["10S", "QH"], ["10D", "6C", "8S"], Outcome.WIN, 200),
            (["10S", "9H"], ["10D", "9C"], Outcome.TIE, 100),
            (["10S", "7H"], ["10D", "9C"], Outcome.LOSE, 0),
        ],
    )
    def test_settle(self, player, dealer, outcome, payout):
        result = settle(make_hand(*player), make_hand(*dealer), 100)
        assert result.outcome == outcome
        assert result.payout == payout

    def test_player_bust_beats_dealer_bust(self):
        """A busted player loses even when the dealer busts too."""
        result = settle(make_hand("10S", "6H", "KC"), make_hand("10D", "6C", "8S"), 100)
        assert result.outcome == Outcome.LOSE
        assert result.payout == 0
        assert result.player_busted

    def test_natural_flag(self, blackjack_hand):
        result = settle(blackjack_hand, make_hand("10D", "8C"), 100)
        assert result.blackjack
        assert not result.dealer_busted

    def test_natural_loses_premium_to_dealer_21(self):
        """A dealer who draws to 21 pushes a natural."""
        result = settle(make_hand("AS", "KH"), make_hand("7D", "7C", "7H"), 100)
        assert result.outcome == Outcome.TIE
        assert result.payout == 100
        assert not result.blackjack

    def test_dealer_bust_flag(self):
        result = settle(make_hand("10S", "7H"), make_hand("10D", "6C", "KS"), 50)
        assert result.dealer_busted
        assert result.payout == 100

    def test_odd_bet_natural_rounds_down(self):
        assert settle(make_hand("AS", "KH"), make_hand("10D", "8C"), 15).payout == 37
