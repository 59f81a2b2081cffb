"""Balance and stake bookkeeping."""

from decimal import Decimal


def to_decimal(amount: Decimal | int | float | str) -> Decimal:
    """Coerce a money amount to Decimal without float artifacts."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


class Ledger:
    """
    Player balance and the stakes committed in the current round.

    Stakes are deducted from the balance when placed. ``payout`` only ever
    credits, so losing stakes are settled simply by not paying them.
    """

    def __init__(
        self,
        initial_balance: Decimal | int = Decimal("1000"),
        min_bet: Decimal | int = 10,
        max_bet: Decimal | int = 500,
    ) -> None:
        """
        Initialize the ledger.

        Args:
            initial_balance: Starting balance, restored by ``reset()``
            min_bet: Minimum stake accepted by ``place_bet``
            max_bet: Maximum stake accepted by ``place_bet``
        """
        self._initial_balance = to_decimal(initial_balance)
        self._balance = self._initial_balance
        self._min_bet = to_decimal(min_bet)
        self._max_bet = to_decimal(max_bet)
        self._bets: list[Decimal] = []

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def initial_balance(self) -> Decimal:
        return self._initial_balance

    @property
    def min_bet(self) -> Decimal:
        return self._min_bet

    @property
    def max_bet(self) -> Decimal:
        return self._max_bet

    @property
    def bets(self) -> list[Decimal]:
        """Return a copy of the stakes placed this round."""
        return list(self._bets)

    def can_bet(self, amount: Decimal | int) -> bool:
        """Check whether a stake is positive, within table limits and affordable."""
        amount = to_decimal(amount)
        if amount <= 0:
            return False
        if amount < self._min_bet or amount > self._max_bet:
            return False
        return amount <= self._balance

    def place_bet(self, amount: Decimal | int) -> bool:
        """Deduct and record a stake. Returns False if it is not acceptable."""
        if not self.can_bet(amount):
            return False
        amount = to_decimal(amount)
        self._balance -= amount
        self._bets.append(amount)
        return True

    def cancel_bet(self, amount: Decimal | int) -> bool:
        """Withdraw one recorded stake of ``amount`` and refund it."""
        amount = to_decimal(amount)
        try:
            self._bets.remove(amount)
        except ValueError:
            return False
        self._balance += amount
        return True

    def payout(self, amount: Decimal | int, multiplier: Decimal | float | int) -> Decimal:
        """
        Credit ``amount * multiplier`` and return the new balance.

        No validation is applied: a push is ``payout(stake, 1)``, a 1:1 win
        ``payout(stake, 2)`` and a 3:2 blackjack ``payout(stake, 2.5)``.
        """
        self._balance += to_decimal(amount) * to_decimal(multiplier)
        return self._balance

    def bets_total(self) -> Decimal:
        """Return the sum of the stakes placed this round."""
        return sum(self._bets, Decimal("0"))

    def clear_bets(self) -> None:
        """Forget recorded stakes without touching the balance."""
        self._bets.clear()

    def reset(self, new_balance: Decimal | int | None = None) -> None:
        """Restore the starting balance (or adopt a new one) and clear stakes."""
        if new_balance is not None:
            self._initial_balance = to_decimal(new_balance)
        self._balance = self._initial_balance
        self._bets.clear()

    def restore(self, balance: Decimal | int, bets: list[Decimal] | None = None) -> None:
        """
        Adopt a saved balance and outstanding stakes as-is.

        The stakes are assumed to be already deducted from ``balance``. The
        starting balance used by ``reset()`` is left alone.
        """
        self._balance = to_decimal(balance)
        self._bets = [to_decimal(bet) for bet in bets or []]

    def __repr__(self) -> str:
        return f"Ledger(balance={self._balance}, bets={self._bets!r})"
