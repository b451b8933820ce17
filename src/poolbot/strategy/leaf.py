"""Leaf strategies.

Stateless policies that terminate a strategy chain:
- NullStrategy: never trades
- AlwaysBuy / AlwaysSell: fixed amount every block, price ignored
- ThresholdStrategy: buy at or below one price, sell at or above another
"""

from __future__ import annotations

from dataclasses import dataclass

from poolbot.strategy.base import Fraction, Trade, TradeContext


class NullStrategy:
    """Strategy that never trades."""

    def trade(self, ctx: TradeContext) -> Trade | None:
        return None


class AlwaysBuy:
    """Buy a fixed amount on every block.

    Useful for deterministic testing and plain accumulation.
    """

    def __init__(self, amount: Fraction) -> None:
        self.amount = amount

    def trade(self, ctx: TradeContext) -> Trade | None:
        return Trade.buy(self.amount)


class AlwaysSell:
    """Sell a fixed amount on every block."""

    def __init__(self, amount: Fraction) -> None:
        self.amount = amount

    def trade(self, ctx: TradeContext) -> Trade | None:
        return Trade.sell(self.amount)


@dataclass(frozen=True)
class ThresholdPoint:
    """Price level paired with the amount to trade when it is crossed."""

    at: float
    amount: Fraction


class ThresholdStrategy:
    """Buy when price is at or below a level, sell when at or above another.

    Either side may be absent, in which case it never fires. The buy side
    is checked first, so if both levels are satisfied at once (only
    possible with buy.at >= sell.at) the result is a buy.
    """

    def __init__(
        self,
        buy: ThresholdPoint | None = None,
        sell: ThresholdPoint | None = None,
    ) -> None:
        """Initialize strategy.

        Args:
            buy: Buy trigger, or None to never buy.
            sell: Sell trigger, or None to never sell.
        """
        self.buy = buy
        self.sell = sell

    def trade(self, ctx: TradeContext) -> Trade | None:
        price = ctx.price_lossy
        if self.buy is not None and price <= self.buy.at:
            return Trade.buy(self.buy.amount)
        if self.sell is not None and price >= self.sell.at:
            return Trade.sell(self.sell.amount)
        return None
