"""Tests for the ExponentialMovingAverage composite strategy."""

from __future__ import annotations

import math

import pytest

from poolbot.strategy import (
    AlwaysBuy,
    ExponentialMovingAverage,
    Fraction,
    NullStrategy,
    ThresholdPoint,
    ThresholdStrategy,
    Trade,
    TradeContext,
)

PRICES = [10.0, 20.0, 30.0, 12.5, 1834.25, 0.0, -3.0, 99.0]


class RecordingStrategy:
    """Inner strategy that records every price it sees."""

    def __init__(self, result: Trade | None = None) -> None:
        self.seen: list[float] = []
        self.result = result

    def trade(self, ctx: TradeContext) -> Trade | None:
        self.seen.append(ctx.price_lossy)
        return self.result


def expected_smoothed(prices: list[float], carry: float) -> list[float]:
    """Reference recurrence: s0 = p0, sn = s(n-1)*c + pn*(1-c)."""
    out: list[float] = []
    for price in prices:
        out.append(price if not out else out[-1] * carry + price * (1 - carry))
    return out


class TestColdStart:
    def test_last_absent_before_first_call(self) -> None:
        assert ExponentialMovingAverage(0.5, NullStrategy()).last is None

    @pytest.mark.parametrize("carry", [0.0, 0.5, 0.9, 1.0, 7.0])
    def test_first_price_passed_unmodified(self, carry: float) -> None:
        inner = RecordingStrategy()
        ema = ExponentialMovingAverage(carry, inner)
        ema.trade(TradeContext(price_lossy=1834.25))
        assert inner.seen == [1834.25]
        assert ema.last == 1834.25


class TestRecurrence:
    @pytest.mark.parametrize("carry", [0.0, 0.5, 0.9, 1.0])
    def test_matches_recurrence(self, carry: float) -> None:
        inner = RecordingStrategy()
        ema = ExponentialMovingAverage(carry, inner)
        lasts = []
        for price in PRICES:
            ema.trade(TradeContext(price_lossy=price))
            lasts.append(ema.last)
        expected = expected_smoothed(PRICES, carry)
        assert inner.seen == expected
        assert lasts == expected

    def test_carry_zero_tracks_latest_price(self) -> None:
        inner = RecordingStrategy()
        ema = ExponentialMovingAverage(0.0, inner)
        for price in PRICES:
            ema.trade(TradeContext(price_lossy=price))
        assert inner.seen == PRICES

    def test_carry_one_freezes_first_price(self) -> None:
        inner = RecordingStrategy()
        ema = ExponentialMovingAverage(1.0, inner)
        for price in PRICES:
            ema.trade(TradeContext(price_lossy=price))
        assert inner.seen == [PRICES[0]] * len(PRICES)

    def test_half_carry_worked_example(self) -> None:
        """Ema{0.5, Null} over 10, 20, 30: no trades, average 10 -> 15 -> 22.5."""
        ema = ExponentialMovingAverage(0.5, NullStrategy())
        results = [ema.trade(TradeContext(price_lossy=p)) for p in (10.0, 20.0, 30.0)]
        assert results == [None, None, None]
        assert ema.last == 22.5

    def test_older_observations_decay(self) -> None:
        """A single spike's weight shrinks by carry each later block."""
        ema = ExponentialMovingAverage(0.5, NullStrategy())
        ema.trade(TradeContext(price_lossy=0.0))
        ema.trade(TradeContext(price_lossy=16.0))
        deviations = []
        for _ in range(4):
            ema.trade(TradeContext(price_lossy=0.0))
            deviations.append(ema.last)
        assert deviations == [4.0, 2.0, 1.0, 0.5]


class TestDelegation:
    def test_state_updates_even_when_inner_trades(self) -> None:
        ema = ExponentialMovingAverage(0.5, AlwaysBuy(Fraction.from_int(1)))
        for price in (10.0, 20.0):
            assert ema.trade(TradeContext(price_lossy=price)) == Trade.buy(Fraction.from_int(1))
        assert ema.last == 15.0

    def test_inner_result_returned_unchanged(self) -> None:
        trade = Trade.sell(Fraction(3, 7))
        ema = ExponentialMovingAverage(0.9, RecordingStrategy(result=trade))
        assert ema.trade(TradeContext(price_lossy=1.0)) is trade

    def test_inner_threshold_sees_smoothed_price(self) -> None:
        """A raw dip below the buy level is smoothed away."""
        inner = ThresholdStrategy(buy=ThresholdPoint(at=100.0, amount=Fraction.from_int(5)))
        ema = ExponentialMovingAverage(0.9, inner)
        assert ema.trade(TradeContext(price_lossy=110.0)) is None
        # smoothed = 110*0.9 + 50*0.1 = 104
        assert ema.trade(TradeContext(price_lossy=50.0)) is None
        assert ema.last == pytest.approx(104.0)

    def test_nested_ema(self) -> None:
        inner = RecordingStrategy()
        outer = ExponentialMovingAverage(0.5, ExponentialMovingAverage(0.5, inner))
        for price in (10.0, 20.0, 30.0):
            outer.trade(TradeContext(price_lossy=price))
        once = expected_smoothed([10.0, 20.0, 30.0], 0.5)
        assert inner.seen == expected_smoothed(once, 0.5)


class TestDegenerateInputs:
    def test_carry_out_of_range_not_clamped(self) -> None:
        """carry > 1 diverges instead of smoothing; no clamping, no error."""
        inner = RecordingStrategy()
        ema = ExponentialMovingAverage(2.0, inner)
        for price in (10.0, 20.0, 30.0):
            ema.trade(TradeContext(price_lossy=price))
        assert inner.seen == expected_smoothed([10.0, 20.0, 30.0], 2.0)
        assert inner.seen == [10.0, 0.0, -30.0]

    def test_nan_propagates(self) -> None:
        ema = ExponentialMovingAverage(0.5, NullStrategy())
        ema.trade(TradeContext(price_lossy=10.0))
        assert ema.trade(TradeContext(price_lossy=math.nan)) is None
        assert ema.last is not None and math.isnan(ema.last)
        ema.trade(TradeContext(price_lossy=10.0))
        assert math.isnan(ema.last)
