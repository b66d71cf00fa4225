"""Blackjack round engine with state machine."""

import asyncio
import logging
from random import Random
from typing import Awaitable, Callable

from transitions import Machine

from core.cards import Card, Deck
from core.errors import InvalidBet
from core.gateway import RoundReporter, RoundResult
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.round import Round, RoundView, empty_hand_view, hand_view
from core.game.state import RoundPhase
from core.hand import BLACKJACK, Hand, Outcome, Settlement, settle
from core.rules import TableRules

logger = logging.getLogger(__name__)

# Suspends the dealer sequence between steps without blocking the loop
Sleep = Callable[[float], Awaitable[None]]


def _settlement_message(settlement: Settlement) -> str:
    if settlement.player_busted:
        return "Bust! You lose"
    if settlement.blackjack:
        return "BLACKJACK!"
    if settlement.dealer_busted:
        return "Dealer busts! You win"
    if settlement.outcome == Outcome.WIN:
        return "You win!"
    if settlement.outcome == Outcome.LOSE:
        return "You lose"
    return "Push"


class BlackjackGame:
    """
    Single-deck blackjack for one session, driven by a state machine.

    The game owns the session's balance, deck and current Round. It is
    completely UI-agnostic: presentation layers read `view()` snapshots and
    subscribe to events. Player actions outside an open player turn are
    ignored and return False.
    """

    # State machine states
    STATES = [s.name.lower() for s in RoundPhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "accept_bet", "source": ["idle", "bet_placed"], "dest": "bet_placed"},
        {"trigger": "begin_deal", "source": "bet_placed", "dest": "dealing"},
        {"trigger": "open_player_turn", "source": "dealing", "dest": "player_turn"},
        {"trigger": "close_player_turn", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "player_busts", "source": "player_turn", "dest": "settled"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "settled"},
        {"trigger": "clear_round", "source": "settled", "dest": "idle"},
    ]

    def __init__(
        self,
        rules: TableRules | None = None,
        balance: int = 1000,
        rng: Random | None = None,
        reporter: RoundReporter | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize a table for one session.

        Args:
            rules: Table rules (uses defaults if not provided)
            balance: Starting balance
            rng: Random number generator for reproducible games
            reporter: Receives every settled round; failures are only logged
            sleep: Suspension used for display pauses
        """
        if balance < 0:
            raise ValueError("balance cannot be negative")

        self.rules = rules or TableRules()
        self.balance = balance
        self.reporter = reporter
        self.events = EventEmitter()
        self.deck = Deck(rng=rng, on_rebuild=self._deck_rebuilt)
        self.round: Round | None = None
        self.message = "Place your bet"

        self._sleep = sleep
        # Set while a 21 is on display before the automatic stand
        self._player_locked = False

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="idle",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get current round phase as enum."""
        return RoundPhase[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def bet(self, amount: int) -> None:
        """
        Place (or change) the bet for the next round.

        Raises:
            InvalidBet: the amount is not playable or a round is in progress
        """
        if self.phase not in (RoundPhase.IDLE, RoundPhase.BET_PLACED):
            self._reject_bet(amount, "Finish the current round first")
        if amount <= 0:
            self._reject_bet(amount, "Bet must be positive")
        if amount < self.rules.min_bet:
            self._reject_bet(amount, f"Minimum bet is {self.rules.min_bet}")
        if amount > self.balance:
            self._reject_bet(amount, "Insufficient balance")

        self.round = Round(bet=amount)
        self.message = f"Bet: {amount}"
        self.events.emit_new(EventType.BET_PLACED, amount=amount)
        self.accept_bet()

    def _reject_bet(self, amount: int, reason: str) -> None:
        self.message = reason
        self.events.emit_new(EventType.BET_REJECTED, amount=amount, message=reason)
        raise InvalidBet(reason)

    async def deal(self) -> None:
        """
        Debit the bet and deal the opening cards.

        A natural is shown for `natural_delay` seconds, then play moves on to
        the dealer without waiting for the player.

        Raises:
            InvalidBet: no bet is pending or it is no longer covered
        """
        if self.phase != RoundPhase.BET_PLACED or self.round is None:
            raise InvalidBet("Place a bet first")
        if self.round.bet > self.balance:
            self._reject_bet(self.round.bet, "Insufficient balance")

        rnd = self.round
        self.begin_deal()
        self.balance -= rnd.bet

        self._deal_card(rnd.player_hand, "player")
        self._deal_card(rnd.player_hand, "player")
        self._deal_card(rnd.dealer_hand, "dealer")
        self._deal_card(rnd.dealer_hand, "dealer", concealed=True)

        self.message = "Cards dealt! Your turn"
        self.events.emit_new(EventType.ROUND_STARTED, bet=rnd.bet, balance=self.balance)
        self.open_player_turn()

        if rnd.player_hand.value == BLACKJACK:
            self.message = "Blackjack!"
            self.events.emit_new(EventType.PLAYER_BLACKJACK)
            await self._auto_stand(self.rules.natural_delay)

    async def play(self, amount: int) -> None:
        """Bet and deal in one step."""
        self.bet(amount)
        await self.deal()

    def _deal_card(self, hand: Hand, owner: str, concealed: bool = False) -> Card:
        """Deal a card to a hand."""
        card = self.deck.draw()
        hand.add_card(card, concealed=concealed)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card="??" if concealed else str(card),
            hand=owner,
            hand_value=hand.value,
        )
        return card

    def _deck_rebuilt(self, deck: Deck) -> None:
        logger.debug("Deck exhausted, rebuilt (epoch %d)", deck.epoch)
        self.events.emit_new(EventType.DECK_REBUILT, epoch=deck.epoch)

    async def hit(self) -> bool:
        """Player takes another card."""
        if not self.can_hit:
            return False

        hand = self.round.player_hand  # type: ignore[union-attr]
        card = self._deal_card(hand, "player")
        self.events.emit_new(EventType.PLAYER_HIT, card=str(card), hand_value=hand.value)

        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=hand.value)
            await self._settle(self.player_busts)
        elif hand.value == BLACKJACK:
            await self._auto_stand(self.rules.twenty_one_delay)

        return True

    async def stand(self) -> bool:
        """Player keeps the current hand; the dealer plays out."""
        if not self.can_stand:
            return False

        self.events.emit_new(
            EventType.PLAYER_STAND,
            hand_value=self.round.player_hand.value,  # type: ignore[union-attr]
        )
        await self._finish_player_turn()
        return True

    async def _auto_stand(self, delay: float) -> None:
        """Hold a 21 on display, then stand on the player's behalf."""
        self._player_locked = True
        try:
            await self._sleep(delay)
        finally:
            self._player_locked = False
        await self._finish_player_turn()

    async def _finish_player_turn(self) -> None:
        self.close_player_turn()
        await self._play_dealer()

    async def _play_dealer(self) -> None:
        """Reveal the hole card, then draw until the stand value or a bust."""
        dealer_hand = self.round.dealer_hand  # type: ignore[union-attr]

        self.message = "Dealer's turn..."
        self.events.emit_new(EventType.DEALER_TURN)

        hole_card = dealer_hand.reveal()
        if hole_card is not None:
            self.events.emit_new(
                EventType.DEALER_REVEALS,
                card=str(hole_card),
                hand_value=dealer_hand.value,
            )

        while True:
            await self._sleep(self.rules.dealer_step_delay)
            if dealer_hand.value >= self.rules.dealer_stand_value:
                break
            self._deal_card(dealer_hand, "dealer")
            self.events.emit_new(EventType.DEALER_HITS, hand_value=dealer_hand.value)

        if dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=dealer_hand.value)

        await self._settle(self.dealer_done)

    async def _settle(self, transition: Callable[[], object]) -> None:
        """Credit the payout, enter SETTLED and report the result."""
        rnd: Round = self.round  # type: ignore[assignment]

        settlement = settle(rnd.player_hand, rnd.dealer_hand, rnd.bet)
        rnd.settlement = settlement
        self.balance += settlement.payout
        self.message = _settlement_message(settlement)
        transition()

        outcome_event = {
            Outcome.WIN: EventType.PLAYER_WINS,
            Outcome.LOSE: EventType.PLAYER_LOSES,
            Outcome.TIE: EventType.PUSH,
        }[settlement.outcome]
        self.events.emit_new(outcome_event, payout=settlement.payout)
        self.events.emit_new(
            EventType.ROUND_SETTLED,
            outcome=settlement.outcome.value,
            bet=rnd.bet,
            payout=settlement.payout,
            blackjack=settlement.blackjack,
            balance=self.balance,
        )
        logger.info(
            "Round settled: %s (bet=%d payout=%d balance=%d)",
            settlement.outcome.value,
            rnd.bet,
            settlement.payout,
            self.balance,
        )

        await self._report(RoundResult(settlement.outcome, rnd.bet, self.balance))

    async def _report(self, result: RoundResult) -> None:
        if self.reporter is None:
            return
        try:
            await self.reporter.report_round_result(result)
        except Exception as exc:  # a lost report never undoes a settlement
            logger.warning("Could not report round result: %s", exc)
            self.events.emit_new(EventType.REPORT_FAILED, error=str(exc))

    def new_round(self) -> bool:
        """Discard a settled round and wait for the next bet."""
        if self.phase != RoundPhase.SETTLED:
            return False

        self.round = None
        self.message = "Place your bet"
        self.clear_round()
        self.events.emit_new(EventType.ROUND_CLEARED, balance=self.balance)
        return True

    @property
    def can_bet(self) -> bool:
        return self.phase in (RoundPhase.IDLE, RoundPhase.BET_PLACED)

    @property
    def can_deal(self) -> bool:
        return self.phase == RoundPhase.BET_PLACED

    @property
    def can_hit(self) -> bool:
        """Check if hitting is allowed."""
        if self.phase != RoundPhase.PLAYER_TURN or self._player_locked:
            return False
        return self.round is not None and self.round.player_hand.value < BLACKJACK

    @property
    def can_stand(self) -> bool:
        return self.phase == RoundPhase.PLAYER_TURN and not self._player_locked

    @property
    def can_new_round(self) -> bool:
        return self.phase == RoundPhase.SETTLED

    def view(self) -> RoundView:
        """Serializable snapshot of the table."""
        rnd = self.round
        settlement = rnd.settlement if rnd else None
        return RoundView(
            phase=self.phase.name,
            balance=self.balance,
            bet=rnd.bet if rnd else 0,
            player_hand=hand_view(rnd.player_hand) if rnd else empty_hand_view(),
            dealer_hand=hand_view(rnd.dealer_hand) if rnd else empty_hand_view(),
            message=self.message,
            outcome=settlement.outcome.value if settlement else None,
            payout=settlement.payout if settlement else None,
            blackjack=settlement.blackjack if settlement else False,
            can_bet=self.can_bet,
            can_deal=self.can_deal,
            can_hit=self.can_hit,
            can_stand=self.can_stand,
            can_new_round=self.can_new_round,
        )
