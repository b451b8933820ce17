"""Strategy interface and value types.

Defines the Strategy Protocol together with the values that flow through it:
- TradeContext: read-only snapshot handed to the strategy once per block
- Trade: the BUY/SELL intent a strategy may emit
- Fraction: exact-rational trade amount matching on-chain token precision
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from math import gcd
from typing import Protocol

U64_MAX = 2**64 - 1


@dataclass(frozen=True, eq=False)
class Fraction:
    """Exact rational amount (numerator / denominator of unsigned 64-bit ints).

    Not reduced on construction. Two fractions compare equal when their
    reduced forms match, so ``Fraction(10, 2) == Fraction.from_int(5)``.
    A zero denominator is carried through unchanged; interpreting it is
    up to the execution side.
    """

    numerator: int
    denominator: int = 1

    def __post_init__(self) -> None:
        """Validate components are u64 integers."""
        for name in ("numerator", "denominator"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
            if not 0 <= value <= U64_MAX:
                raise ValueError(f"{name} must be within 0..2**64-1, got {value}")

    @classmethod
    def from_int(cls, value: int) -> Fraction:
        """Build ``value / 1``."""
        return cls(value, 1)

    def _reduced(self) -> tuple[int, int]:
        divisor = gcd(self.numerator, self.denominator)
        if divisor == 0:
            return (0, 0)
        return (self.numerator // divisor, self.denominator // divisor)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fraction):
            return NotImplemented
        return self._reduced() == other._reduced()

    def __hash__(self) -> int:
        return hash(self._reduced())

    def __str__(self) -> str:
        if self.denominator == 1:
            return str(self.numerator)
        return f"{self.numerator}/{self.denominator}"


@dataclass(frozen=True)
class TradeContext:
    """Read-only context passed to a strategy on each block.

    The price is lossy: it is derived upstream from pool state and only
    used for decisions, never for amounts.
    """

    price_lossy: float


class TradeSide(str, Enum):
    """Trade side."""

    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Trade:
    """Trade intent emitted by a strategy.

    Not yet executed; ownership passes to the execution collaborator.
    """

    side: TradeSide
    amount: Fraction

    @classmethod
    def buy(cls, amount: Fraction) -> Trade:
        return cls(TradeSide.BUY, amount)

    @classmethod
    def sell(cls, amount: Fraction) -> Trade:
        return cls(TradeSide.SELL, amount)

    @property
    def is_buy(self) -> bool:
        return self.side == TradeSide.BUY

    def as_log_fields(self) -> dict[str, str]:
        """Flat fields for structured logging."""
        return {"side": self.side.value, "amount": str(self.amount)}


class Strategy(Protocol):
    """Protocol defining the strategy interface.

    Strategies implement trade() which receives the current context and
    returns at most one trade intent. Returning None means "no trade this
    block" and is a normal result, not an error.

    trade() may update the strategy's own state but must not do I/O,
    block, retry or raise. Bad inputs (NaN prices, odd parameters)
    degrade to whatever IEEE-754 arithmetic produces.

    Example:
        class BuyTheDip:
            def trade(self, ctx: TradeContext) -> Trade | None:
                if ctx.price_lossy < 1500.0:
                    return Trade.buy(Fraction.from_int(1))
                return None
    """

    def trade(self, ctx: TradeContext) -> Trade | None:
        """Decide on a trade for the current block.

        Args:
            ctx: Context with the observed price.

        Returns:
            A Trade intent, or None for no trade.
        """
        ...
