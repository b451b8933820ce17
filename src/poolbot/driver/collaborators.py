"""Interfaces the driver consumes from the outside world.

The decision core never touches chain state. Blocks, prices and trade
execution come through these protocols; implementations surface their
failures as CollaboratorError so the driver can back off and retry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from poolbot.strategy.base import Trade


class CollaboratorError(Exception):
    """Retryable failure in a block source, price source or executor."""


class FeedExhaustedError(CollaboratorError):
    """A finite block feed has no more blocks. Not retried."""


class ExecutionError(CollaboratorError):
    """Trade submission failed."""

    def __init__(self, message: str, block: int | None = None) -> None:
        super().__init__(message)
        self.block = block


class BlockSource(Protocol):
    """Supplies the most recent block number."""

    async def latest_block(self) -> int: ...


class PriceSource(Protocol):
    """Supplies the pool price observed at a given block."""

    async def price_at(self, block: int) -> float: ...


class TradeExecutor(Protocol):
    """Turns a trade intent into an actual swap (quote, calldata, submission)."""

    async def execute(self, block: int, trade: Trade) -> None: ...
