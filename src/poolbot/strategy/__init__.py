"""Trading strategy layer.

Composable policies turning a price observation into at most one trade intent:
- Strategy Protocol: trade(ctx) -> Trade | None
- Leaf strategies: NullStrategy, AlwaysBuy, AlwaysSell, ThresholdStrategy
- ExponentialMovingAverage: smoothing wrapper around an inner strategy
- build_strategy: config tree -> Strategy
"""

from poolbot.strategy.base import Fraction, Strategy, Trade, TradeContext, TradeSide
from poolbot.strategy.config import (
    ConfigError,
    StrategyConfig,
    build_strategy,
    load_strategy,
    load_strategy_config,
    parse_strategy_config,
)
from poolbot.strategy.ema import ExponentialMovingAverage
from poolbot.strategy.leaf import (
    AlwaysBuy,
    AlwaysSell,
    NullStrategy,
    ThresholdPoint,
    ThresholdStrategy,
)

__all__ = [
    "AlwaysBuy",
    "AlwaysSell",
    "ConfigError",
    "ExponentialMovingAverage",
    "Fraction",
    "NullStrategy",
    "Strategy",
    "StrategyConfig",
    "ThresholdPoint",
    "ThresholdStrategy",
    "Trade",
    "TradeContext",
    "TradeSide",
    "build_strategy",
    "load_strategy",
    "load_strategy_config",
    "parse_strategy_config",
]
