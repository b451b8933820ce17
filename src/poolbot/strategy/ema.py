"""ExponentialMovingAverage - smoothing wrapper around another strategy.

Maintains an exponentially weighted average of every observed price and
hands the smoothed value, instead of the raw price, to the inner strategy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from poolbot.strategy.base import TradeContext

if TYPE_CHECKING:
    from poolbot.strategy.base import Strategy, Trade


class ExponentialMovingAverage:
    """Strategy that smooths prices before delegating to an inner strategy.

    Recurrence, with carry c and raw prices p0, p1, ...:
        s0 = p0
        sn = s(n-1) * c + pn * (1 - c)

    c = 0 follows the latest price, c = 1 freezes on the first one.
    carry is not validated; values outside [0, 1] diverge instead of
    smoothing.

    The average is updated on every call, whether or not the inner
    strategy trades.
    """

    def __init__(self, carry: float, inner: Strategy) -> None:
        """Initialize strategy.

        Args:
            carry: Weight of the previous average (smoothing factor).
            inner: Strategy evaluated against the smoothed price.
        """
        self.carry = carry
        self.inner = inner
        self._last: float | None = None

    @property
    def last(self) -> float | None:
        """Smoothed price after the most recent call (None before the first)."""
        return self._last

    def trade(self, ctx: TradeContext) -> Trade | None:
        price = ctx.price_lossy
        if self._last is None:
            smoothed = price
        else:
            smoothed = self._last * self.carry + price * (1 - self.carry)
        self._last = smoothed
        return self.inner.trade(TradeContext(price_lossy=smoothed))
