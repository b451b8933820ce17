"""Block driver and its external collaborators.

The driver polls for new blocks, fetches the pool price, calls the strategy
once per block and forwards any trade intent to an executor.
"""

from poolbot.driver.backoff import BackoffConfig, BackoffState, compute_backoff_delay
from poolbot.driver.collaborators import (
    BlockSource,
    CollaboratorError,
    ExecutionError,
    FeedExhaustedError,
    PriceSource,
    TradeExecutor,
)
from poolbot.driver.executors import LoggingExecutor
from poolbot.driver.loop import BlockDecision, BlockDriver, DriverStats
from poolbot.driver.replay import PriceRecord, ReplayFeed, load_price_records

__all__ = [
    "BackoffConfig",
    "BackoffState",
    "BlockDecision",
    "BlockDriver",
    "BlockSource",
    "CollaboratorError",
    "DriverStats",
    "ExecutionError",
    "FeedExhaustedError",
    "LoggingExecutor",
    "PriceRecord",
    "PriceSource",
    "ReplayFeed",
    "TradeExecutor",
    "compute_backoff_delay",
    "load_price_records",
]
