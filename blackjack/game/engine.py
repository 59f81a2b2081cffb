"""Blackjack round engine with state machine."""

import logging
from decimal import ROUND_FLOOR, Decimal
from typing import TYPE_CHECKING, Callable, Literal

from blackjack.cards import Card, Shoe
from blackjack.dealer import DealerPolicy
from blackjack.game.events import CallbackList, EventEmitter, EventType, Unsubscribe
from blackjack.game.snapshot import GameSnapshot, HandState, PlayerHandState, RoundResult
from blackjack.game.state import RoundPhase, RoundStateMachine
from blackjack.hand import PAYOUT_MULTIPLIERS, Hand, Outcome, PlayerHand, evaluate_hands
from blackjack.ledger import Ledger, to_decimal
from blackjack.rng import SecureShuffler
from blackjack.rules import TableRules

if TYPE_CHECKING:
    from config import GameConfig

logger = logging.getLogger(__name__)

# Maximum number of player hands, splits included
MAX_HANDS = 3

StateListener = Callable[[GameSnapshot], None]

_OUTCOME_EVENTS = {
    Outcome.WIN: EventType.PLAYER_WINS,
    Outcome.BLACKJACK: EventType.PLAYER_WINS,
    Outcome.LOSE: EventType.PLAYER_LOSES,
    Outcome.PUSH: EventType.PUSH,
}


def _outcome_message(outcome: Outcome, hand: Hand, dealer_hand: Hand) -> str:
    if outcome is Outcome.LOSE:
        if hand.is_bust:
            return "Bust! You lose."
        if dealer_hand.is_blackjack:
            return "Dealer has blackjack!"
        return "Dealer wins."
    if outcome is Outcome.PUSH:
        if hand.is_blackjack:
            return "Push - both have blackjack."
        return "Push - bet returned."
    if outcome is Outcome.BLACKJACK:
        return "Blackjack! You win 3:2!"
    if dealer_hand.is_bust:
        return "Dealer busts! You win!"
    return "You win!"


class RoundEngine:
    """
    Single-player blackjack engine for one to three hands per round.

    This is the core game logic, completely UI-agnostic. Callers drive it
    through the public operations and observe it through ``get_state()``,
    ``subscribe()`` and the ``events`` emitter.

    Every operation checks its preconditions first. When the current phase,
    slot or balance does not allow it, the operation returns False, emits an
    ``INVALID_ACTION`` event and leaves the round untouched.
    """

    def __init__(
        self,
        rules: TableRules | None = None,
        initial_balance: Decimal | int = Decimal("1000"),
        shuffler: SecureShuffler | None = None,
        shoe: Shoe | None = None,
    ) -> None:
        """
        Initialize a new engine.

        Args:
            rules: Table rules (uses defaults if not provided)
            initial_balance: Starting balance
            shuffler: Random source for the shoe
            shoe: Pre-built shoe; a fresh shuffled shoe of ``rules.deck_count``
                decks is created when omitted
        """
        self.rules = rules or TableRules()
        if shoe is None:
            shoe = Shoe(shuffler).populate(self.rules.deck_count).shuffle()
        self.shoe = shoe
        self.ledger = Ledger(initial_balance, self.rules.min_bet, self.rules.max_bet)
        self.dealer = DealerPolicy(hits_soft_17=self.rules.dealer_hits_soft_17)
        self.state_machine = RoundStateMachine()
        self.events = EventEmitter()
        self._listeners: CallbackList[StateListener] = CallbackList("state")

        self._player_hands: list[PlayerHand] = []
        self._dealer_hand = Hand()
        self._current_hand_index = 0
        self._hand_count = 1
        self._insurance_offered = False
        self._insurance_taken = False
        self._insurance_bet = Decimal("0")

        self.state_machine.subscribe(self._on_phase_change)

    @classmethod
    def from_config(
        cls,
        game_config: "GameConfig",
        shuffler: SecureShuffler | None = None,
    ) -> "RoundEngine":
        """Build an engine from the environment-driven game configuration."""
        return cls(
            rules=game_config.to_rules(),
            initial_balance=game_config.initial_balance,
            shuffler=shuffler,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: GameSnapshot,
        rules: TableRules | None = None,
        shuffler: SecureShuffler | None = None,
    ) -> "RoundEngine":
        """
        Rebuild an engine from a stored snapshot.

        Card order is not part of a snapshot, so the rebuilt engine deals from
        a fresh shuffled shoe. Table rules come from the snapshot unless
        ``rules`` is given.
        """
        rules = rules or TableRules(
            deck_count=snapshot.deck_count,
            min_bet=snapshot.min_bet,
            max_bet=snapshot.max_bet,
            dealer_hits_soft_17=snapshot.dealer_hits_soft_17,
            split_ten_values=snapshot.split_ten_values,
            reshuffle_threshold=snapshot.reshuffle_threshold,
        )
        engine = cls(rules=rules, initial_balance=snapshot.balance, shuffler=shuffler)

        engine._player_hands = [state.to_player_hand() for state in snapshot.player_hands]
        engine._dealer_hand = Hand([card.to_card() for card in snapshot.dealer_hand.cards])
        engine._current_hand_index = snapshot.current_hand_index
        engine._hand_count = snapshot.hand_count
        engine._insurance_offered = snapshot.insurance_offered
        engine._insurance_taken = snapshot.insurance_taken
        engine._insurance_bet = snapshot.insurance_bet

        stakes = [hand.bet for hand in engine._player_hands if hand.bet > 0]
        if snapshot.insurance_taken:
            stakes.append(snapshot.insurance_bet)
        engine.ledger.restore(snapshot.balance, stakes)
        engine.state_machine.restore(snapshot.phase)

        logger.info("Restored engine in %s with balance %s", snapshot.phase.value, snapshot.balance)
        return engine

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def phase(self) -> RoundPhase:
        """Get the current round phase."""
        return self.state_machine.phase

    @property
    def balance(self) -> Decimal:
        return self.ledger.balance

    def get_state(self) -> GameSnapshot:
        """Return an independent snapshot of the whole engine."""
        return GameSnapshot(
            phase=self.phase,
            player_hands=[
                PlayerHandState.from_player_hand(hand, can_split=self._is_pair(hand))
                for hand in self._player_hands
            ],
            dealer_hand=HandState.from_hand(self._dealer_hand),
            balance=self.ledger.balance,
            bets=[hand.bet for hand in self._player_hands],
            current_hand_index=self._current_hand_index,
            hand_count=self._hand_count,
            insurance_offered=self._insurance_offered,
            insurance_taken=self._insurance_taken,
            insurance_bet=self._insurance_bet,
            min_bet=self.rules.min_bet,
            max_bet=self.rules.max_bet,
            deck_count=self.rules.deck_count,
            dealer_hits_soft_17=self.rules.dealer_hits_soft_17,
            split_ten_values=self.rules.split_ten_values,
            reshuffle_threshold=self.rules.reshuffle_threshold,
        )

    def subscribe(self, callback: StateListener) -> Unsubscribe:
        """Call ``callback`` with a fresh snapshot after every state change."""
        return self._listeners.subscribe(callback)

    def _notify(self) -> None:
        if self._listeners:
            self._listeners.notify(self.get_state())

    def _on_phase_change(self, new_phase: RoundPhase, old_phase: RoundPhase) -> None:
        self.events.emit_new(
            EventType.PHASE_CHANGED,
            phase=new_phase.value,
            previous=old_phase.value,
        )

    def _reject(self, action: str, reason: str) -> Literal[False]:
        logger.debug("Rejected %s: %s", action, reason)
        self.events.emit_new(EventType.INVALID_ACTION, action=action, message=reason)
        return False

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def _reshuffle(self, reason: str) -> None:
        self.shoe.reset().shuffle()
        logger.info("Shoe reshuffled (%s), %d cards", reason, self.shoe.remaining_count())
        self.events.emit_new(
            EventType.SHOE_SHUFFLED,
            reason=reason,
            cards_remaining=self.shoe.remaining_count(),
        )

    def _draw(self) -> Card:
        """Take the top card, refilling an exhausted shoe first."""
        if self.shoe.is_empty():
            logger.warning("Shoe exhausted mid-round; resetting and reshuffling")
            self._reshuffle("exhausted")
        return self.shoe.deal()

    def _deal_to(self, hand: Hand, target: int | str, face_up: bool = True) -> Card:
        card = self._draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card) if face_up else "??",
            hand=target,
            hand_value=hand.value if face_up else None,
        )
        return card

    def _dealer_draw(self) -> Card:
        card = self._draw()
        self.events.emit_new(EventType.CARD_DEALT, card=str(card), hand="dealer")
        return card

    # ------------------------------------------------------------------
    # Hand bookkeeping
    # ------------------------------------------------------------------

    def _hand_at(self, slot: int) -> PlayerHand | None:
        if 0 <= slot < len(self._player_hands):
            return self._player_hands[slot]
        return None

    def _is_pair(self, hand: Hand) -> bool:
        """Check whether a two-card hand pairs up under the table's split rule."""
        if hand.card_count != 2:
            return False
        if hand.can_split:
            return True
        first, second = hand.cards
        return self.rules.split_ten_values and first.is_ten_value and second.is_ten_value

    def _activate_first_open_hand(self) -> None:
        """Point at the lowest non-standing hand, or hand over to the dealer."""
        for index, hand in enumerate(self._player_hands):
            if not hand.is_standing:
                self._current_hand_index = index
                return
        self.state_machine.transition(RoundPhase.DEALER_TURN)

    def _advance_active_hand(self) -> None:
        """Move to the next open hand after the current one, wrapping around."""
        hands = self._player_hands
        if all(hand.is_standing for hand in hands):
            self.state_machine.transition(RoundPhase.DEALER_TURN)
            return

        current = self._current_hand_index
        if 0 <= current < len(hands) and not hands[current].is_standing:
            return

        order = list(range(current + 1, len(hands))) + list(range(0, current + 1))
        for index in order:
            if not hands[index].is_standing:
                self._current_hand_index = index
                return

    def _insurance_amount(self) -> Decimal:
        main_bet = self._player_hands[0].bet if self._player_hands else Decimal("0")
        return (main_bet / 2).to_integral_value(rounding=ROUND_FLOOR)

    def _bet_rejection(self, amount: Decimal) -> str:
        if amount <= 0:
            return "Bet must be positive"
        if amount < self.ledger.min_bet or amount > self.ledger.max_bet:
            return f"Bet must be between {self.ledger.min_bet} and {self.ledger.max_bet}"
        return "Insufficient balance"

    # ------------------------------------------------------------------
    # Betting phase
    # ------------------------------------------------------------------

    def start_new_round(self) -> bool:
        """
        Clear the table and return to BETTING.

        Stake records are dropped without touching the balance, so stakes
        still on the table are forfeited. Use ``remove_bet`` to withdraw a
        bet before the deal.
        """
        if self.phase != RoundPhase.GAME_OVER and self.ledger.bets_total() > 0:
            logger.warning(
                "Abandoning round during %s; %s in stakes forfeited",
                self.phase.value,
                self.ledger.bets_total(),
            )

        self._player_hands = []
        self._dealer_hand = Hand()
        self.ledger.clear_bets()
        self._current_hand_index = 0
        self._hand_count = 1
        self._insurance_offered = False
        self._insurance_taken = False
        self._insurance_bet = Decimal("0")
        self.state_machine.reset()

        if self.shoe.remaining_count() < self.rules.reshuffle_threshold:
            self._reshuffle("threshold")

        logger.info("New round, balance %s", self.ledger.balance)
        self.events.emit_new(EventType.ROUND_STARTED, balance=self.ledger.balance)
        self._notify()
        return True

    def set_hand_count(self, count: int) -> bool:
        """Choose how many hands to play this round (1-3)."""
        if self.phase != RoundPhase.BETTING:
            return self._reject("selectHands", f"Cannot change hands during {self.phase.value}")
        if not 1 <= count <= MAX_HANDS:
            return self._reject("selectHands", f"Hand count must be between 1 and {MAX_HANDS}")

        self._hand_count = count
        self._notify()
        return True

    def place_bet(self, slot: int, amount: Decimal | int) -> bool:
        """
        Stake ``amount`` on hand ``slot``.

        Args:
            slot: Hand slot (0-2)
            amount: Stake, validated against table limits and balance

        Returns:
            True if the bet was accepted
        """
        if self.phase != RoundPhase.BETTING:
            return self._reject("placeBet", f"Cannot bet during {self.phase.value}")
        if not 0 <= slot < MAX_HANDS:
            return self._reject("placeBet", f"Slot must be between 0 and {MAX_HANDS - 1}")

        existing = self._hand_at(slot)
        if existing is not None and existing.bet > 0:
            return self._reject("placeBet", f"Slot {slot} already has a bet")

        amount = to_decimal(amount)
        if not self.ledger.place_bet(amount):
            return self._reject("placeBet", self._bet_rejection(amount))

        while len(self._player_hands) <= slot:
            self._player_hands.append(PlayerHand())
        self._player_hands[slot].bet = amount

        logger.debug("Bet %s on slot %d", amount, slot)
        self.events.emit_new(
            EventType.BET_PLACED,
            slot=slot,
            amount=amount,
            balance=self.ledger.balance,
        )
        self._notify()
        return True

    def remove_bet(self, slot: int) -> bool:
        """Withdraw the stake on ``slot`` before the deal."""
        if self.phase != RoundPhase.BETTING:
            return self._reject("removeBet", f"Cannot remove bets during {self.phase.value}")
        hand = self._hand_at(slot)
        if hand is None or hand.bet <= 0:
            return self._reject("removeBet", f"No bet on slot {slot}")

        amount = hand.bet
        self.ledger.cancel_bet(amount)
        hand.bet = Decimal("0")

        self.events.emit_new(
            EventType.BET_REMOVED,
            slot=slot,
            amount=amount,
            balance=self.ledger.balance,
        )
        self._notify()
        return True

    def deal(self) -> bool:
        """
        Deal the opening cards.

        Each staked hand and the dealer receive two cards in rotation. The
        dealer's first card is the hole card, the second is face up. An Ace
        showing opens the insurance decision.
        """
        if self.phase != RoundPhase.BETTING:
            return self._reject("deal", f"Cannot deal during {self.phase.value}")
        if not any(hand.bet > 0 for hand in self._player_hands):
            return self._reject("deal", "Place a bet before dealing")

        self._player_hands = [hand for hand in self._player_hands if hand.bet > 0]
        self._dealer_hand = Hand()
        self._current_hand_index = 0

        for round_number in range(2):
            for slot, hand in enumerate(self._player_hands):
                self._deal_to(hand, slot)
            self._deal_to(self._dealer_hand, "dealer", face_up=round_number == 1)

        self.state_machine.transition(RoundPhase.DEALING)

        for slot, hand in enumerate(self._player_hands):
            if hand.is_blackjack:
                hand.is_standing = True
                self.events.emit_new(EventType.PLAYER_BLACKJACK, slot=slot)

        if self._dealer_hand.cards[1].is_ace:
            self._insurance_offered = True
            self.state_machine.transition(RoundPhase.INSURANCE_CHECK)
            self.events.emit_new(EventType.INSURANCE_OFFERED, amount=self._insurance_amount())
        else:
            self.state_machine.transition(RoundPhase.PLAYER_TURN)
            self._activate_first_open_hand()

        self._notify()
        return True

    # ------------------------------------------------------------------
    # Insurance
    # ------------------------------------------------------------------

    def take_insurance(self) -> bool:
        """Stake half the first hand's bet (rounded down) on a dealer blackjack."""
        if self.phase != RoundPhase.INSURANCE_CHECK or not self._insurance_offered:
            return self._reject("acceptInsurance", "Insurance is not on offer")

        amount = self._insurance_amount()
        if not self.ledger.place_bet(amount):
            return self._reject("acceptInsurance", self._bet_rejection(amount))

        self._insurance_bet = amount
        self._insurance_taken = True
        self.events.emit_new(EventType.INSURANCE_TAKEN, amount=amount)

        self.state_machine.transition(RoundPhase.PLAYER_TURN)
        self._activate_first_open_hand()
        self._notify()
        return True

    def decline_insurance(self) -> bool:
        """Player declines insurance."""
        if self.phase != RoundPhase.INSURANCE_CHECK or not self._insurance_offered:
            return self._reject("declineInsurance", "Insurance is not on offer")

        self.events.emit_new(EventType.INSURANCE_DECLINED)
        self.state_machine.transition(RoundPhase.PLAYER_TURN)
        self._activate_first_open_hand()
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Player turn
    # ------------------------------------------------------------------

    def _open_hand(self, action: str, slot: int) -> PlayerHand | str:
        """Return the hand at ``slot`` if it can act, else the reason it cannot."""
        if self.phase != RoundPhase.PLAYER_TURN:
            return f"Cannot {action} during {self.phase.value}"
        hand = self._hand_at(slot)
        if hand is None:
            return f"No hand in slot {slot}"
        if hand.is_standing:
            return f"Hand {slot} is already standing"
        return hand

    def hit(self, slot: int) -> bool:
        """Player hits (takes another card)."""
        hand = self._open_hand("hit", slot)
        if isinstance(hand, str):
            return self._reject("hit", hand)

        self._deal_to(hand, slot)
        self.events.emit_new(EventType.PLAYER_HIT, slot=slot, hand_value=hand.value)

        if hand.is_bust:
            hand.is_standing = True
            self.events.emit_new(EventType.PLAYER_BUSTS, slot=slot, hand_value=hand.value)
            self._advance_active_hand()

        self._notify()
        return True

    def stand(self, slot: int) -> bool:
        """Player stands (keeps current hand)."""
        hand = self._open_hand("stand", slot)
        if isinstance(hand, str):
            return self._reject("stand", hand)

        hand.is_standing = True
        self.events.emit_new(EventType.PLAYER_STAND, slot=slot, hand_value=hand.value)
        self._advance_active_hand()
        self._notify()
        return True

    def _double_rejection(self, slot: int) -> str | None:
        hand = self._open_hand("double", slot)
        if isinstance(hand, str):
            return hand
        if hand.card_count != 2:
            return "Can only double on the first two cards"
        if not self.ledger.can_bet(hand.bet):
            return "Insufficient balance to double"
        return None

    def can_double_down(self, slot: int) -> bool:
        """Check if doubling is allowed on ``slot``."""
        return self._double_rejection(slot) is None

    def double_down(self, slot: int) -> bool:
        """Double the stake, take exactly one card and stand."""
        reason = self._double_rejection(slot)
        if reason is not None:
            return self._reject("double", reason)

        hand = self._player_hands[slot]
        self.ledger.place_bet(hand.bet)
        hand.bet *= 2
        hand.is_doubled = True
        self._deal_to(hand, slot)
        hand.is_standing = True

        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            slot=slot,
            hand_value=hand.value,
            new_bet=hand.bet,
        )
        if hand.is_bust:
            self.events.emit_new(EventType.PLAYER_BUSTS, slot=slot, hand_value=hand.value)

        self._advance_active_hand()
        self._notify()
        return True

    def _split_rejection(self, slot: int) -> str | None:
        hand = self._open_hand("split", slot)
        if isinstance(hand, str):
            return hand
        if len(self._player_hands) >= MAX_HANDS:
            return f"Maximum of {MAX_HANDS} hands reached"
        if not self._is_pair(hand):
            return f"Hand {slot} is not a pair"
        if not self.ledger.can_bet(hand.bet):
            return "Insufficient balance to split"
        return None

    def can_split(self, slot: int) -> bool:
        """Check if splitting is allowed on ``slot``."""
        return self._split_rejection(slot) is None

    def split(self, slot: int) -> bool:
        """
        Split a pair into two hands with equal stakes.

        The second card moves to a new hand inserted right after ``slot``;
        each hand then receives one card. Split Aces stand immediately.
        """
        reason = self._split_rejection(slot)
        if reason is not None:
            return self._reject("split", reason)

        hand = self._player_hands[slot]
        second_card = hand.remove_card()
        new_hand = PlayerHand(cards=[second_card], bet=hand.bet, is_split=True)
        hand.is_split = True
        self.ledger.place_bet(hand.bet)

        new_slot = slot + 1
        self._player_hands.insert(new_slot, new_hand)
        if self._current_hand_index > slot:
            self._current_hand_index += 1

        self._deal_to(hand, slot)
        self._deal_to(new_hand, new_slot)

        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            slot=slot,
            hand1_value=hand.value,
            hand2_value=new_hand.value,
        )

        if hand.cards[0].is_ace:
            hand.is_standing = True
            new_hand.is_standing = True
            self._advance_active_hand()

        self._notify()
        return True

    # ------------------------------------------------------------------
    # Dealer turn and settlement
    # ------------------------------------------------------------------

    def play_dealer_turn(self) -> bool:
        """Complete the dealer's hand and move to RESOLUTION."""
        if self.phase != RoundPhase.DEALER_TURN:
            return self._reject("dealerTurn", f"Cannot play dealer during {self.phase.value}")

        if all(hand.is_bust for hand in self._player_hands):
            # Nothing left to beat
            self.events.emit_new(EventType.DEALER_SKIPS, hand_value=self._dealer_hand.value)
        else:
            self.dealer.play_turn(self._dealer_hand, self._dealer_draw)
            if self._dealer_hand.is_bust:
                self.events.emit_new(EventType.DEALER_BUSTS, hand_value=self._dealer_hand.value)
            else:
                self.events.emit_new(EventType.DEALER_STANDS, hand_value=self._dealer_hand.value)

        self.state_machine.transition(RoundPhase.RESOLUTION)
        self._notify()
        return True

    def resolve_round(self) -> list[RoundResult] | Literal[False]:
        """
        Settle insurance and every hand, then move to GAME_OVER.

        Returns:
            One result per hand, or False outside RESOLUTION
        """
        if self.phase != RoundPhase.RESOLUTION:
            return self._reject("resolve", f"Cannot resolve during {self.phase.value}")

        dealer_hand = self._dealer_hand

        if self._insurance_taken:
            if dealer_hand.is_blackjack:
                self.ledger.payout(self._insurance_bet, 2)
                self.events.emit_new(EventType.INSURANCE_WINS, amount=self._insurance_bet * 2)
            else:
                self.events.emit_new(EventType.INSURANCE_LOSES, amount=self._insurance_bet)

        results: list[RoundResult] = []
        for slot, hand in enumerate(self._player_hands):
            outcome = evaluate_hands(hand, dealer_hand)
            multiplier = PAYOUT_MULTIPLIERS[outcome]
            if outcome is not Outcome.LOSE:
                self.ledger.payout(hand.bet, multiplier)

            result = RoundResult(
                slot=slot,
                outcome=outcome,
                winnings=hand.bet * (multiplier - 1),
                message=_outcome_message(outcome, hand, dealer_hand),
            )
            results.append(result)
            self.events.emit_new(
                _OUTCOME_EVENTS[outcome],
                slot=slot,
                outcome=outcome.value,
                amount=result.winnings,
            )

        self.state_machine.transition(RoundPhase.GAME_OVER)

        net = sum((result.winnings for result in results), Decimal("0"))
        logger.info("Round settled: net %s, balance %s", net, self.ledger.balance)
        self.events.emit_new(EventType.ROUND_ENDED, result=net, balance=self.ledger.balance)
        self._notify()
        return results
