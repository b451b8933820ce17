"""BlockDriver - polls for new blocks and drives a strategy once per block.

Flow per step:
1. Poll the BlockSource for the latest block
2. Skip if it is not newer than the last evaluated block
3. Fetch the price at that block and build a TradeContext
4. Call strategy.trade() exactly once
5. Hand a non-None Trade to the TradeExecutor

All blocking work (polling, price fetches, submission) happens here, never
inside the strategy.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from poolbot.driver.backoff import BackoffConfig, BackoffState, compute_backoff_delay
from poolbot.driver.collaborators import CollaboratorError, FeedExhaustedError
from poolbot.strategy.base import TradeContext

if TYPE_CHECKING:
    import random
    from collections.abc import Awaitable, Callable

    from poolbot.driver.collaborators import BlockSource, PriceSource, TradeExecutor
    from poolbot.strategy.base import Strategy, Trade

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockDecision:
    """Strategy outcome for one evaluated block."""

    block: int
    price_lossy: float
    trade: Trade | None


@dataclass
class DriverStats:
    """Counters for a driver run."""

    blocks_evaluated: int = 0
    blocks_skipped: int = 0
    trades_emitted: int = 0
    trades_executed: int = 0
    errors: int = 0


class BlockDriver:
    """Runs a single long-lived strategy against a block feed.

    The driver owns the strategy for its whole lifetime and calls it
    sequentially, once per evaluated block. Blocks jumped over between two
    polls are counted as skipped; only the newest one is evaluated.

    If the executor fails, the pending decision is retried on the next
    step without calling the strategy again, so strategy state observes
    every block exactly once.
    """

    def __init__(
        self,
        strategy: Strategy,
        blocks: BlockSource,
        prices: PriceSource,
        executor: TradeExecutor,
        *,
        poll_interval_ms: int = 1000,
        backoff_config: BackoffConfig | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize driver.

        Args:
            strategy: Strategy instance, exclusively owned by this driver.
            blocks: Source of the latest block number.
            prices: Source of the price at a block.
            executor: Receives trade intents.
            poll_interval_ms: Wait between polls when no new block is seen.
            backoff_config: Retry policy for collaborator failures.
            rng: Optional seeded RNG for deterministic backoff jitter.
            sleep: Sleep coroutine (injectable for tests).
        """
        if poll_interval_ms < 0:
            raise ValueError(f"poll_interval_ms must be >= 0, got {poll_interval_ms}")
        self._strategy = strategy
        self._blocks = blocks
        self._prices = prices
        self._executor = executor
        self._poll_interval_ms = poll_interval_ms
        self._backoff_config = backoff_config or BackoffConfig()
        self._backoff_state = BackoffState()
        self._rng = rng
        self._sleep = sleep

        self._last_block: int | None = None
        self._pending: BlockDecision | None = None
        self._running = False
        self._shutdown_requested = False
        self.stats = DriverStats()

    @property
    def last_block(self) -> int | None:
        """Most recently evaluated block."""
        return self._last_block

    @property
    def is_running(self) -> bool:
        return self._running

    def request_shutdown(self) -> None:
        """Stop the run loop after the current step.

        A request made before run() starts makes run() return without
        polling.
        """
        logger.info("Shutdown requested")
        self._shutdown_requested = True
        self._running = False

    async def step(self) -> BlockDecision | None:
        """Evaluate the latest block if it is new.

        Returns:
            The decision for a newly evaluated (or re-executed) block, or
            None if no new block was available.

        Raises:
            CollaboratorError: If a collaborator call fails.
        """
        if self._pending is not None:
            decision = self._pending
            logger.info("Retrying trade execution", extra={"block": decision.block})
            await self._execute(decision)
            return decision

        block = await self._blocks.latest_block()
        if self._last_block is not None and block <= self._last_block:
            return None

        price = await self._prices.price_at(block)
        decision = self._decide(block, price)

        if decision.trade is not None:
            self._pending = decision
            await self._execute(decision)
        return decision

    def _decide(self, block: int, price: float) -> BlockDecision:
        if self._last_block is not None and block > self._last_block + 1:
            skipped = block - self._last_block - 1
            self.stats.blocks_skipped += skipped
            logger.debug("Blocks skipped between polls", extra={"block": block, "skipped": skipped})

        trade = self._strategy.trade(TradeContext(price_lossy=price))
        self._last_block = block
        self.stats.blocks_evaluated += 1
        if trade is not None:
            self.stats.trades_emitted += 1
        logger.debug(
            "Block evaluated",
            extra={"block": block, "price": price, "trade": trade.side.value if trade else None},
        )
        return BlockDecision(block=block, price_lossy=price, trade=trade)

    async def _execute(self, decision: BlockDecision) -> None:
        assert decision.trade is not None
        await self._executor.execute(decision.block, decision.trade)
        self._pending = None
        self.stats.trades_executed += 1

    async def run(self, *, max_blocks: int | None = None) -> DriverStats:
        """Drive the strategy until shutdown, feed exhaustion or max_blocks.

        Collaborator failures are retried with exponential backoff; once
        consecutive failures exceed max_retries the last error is re-raised.
        Any other exception propagates immediately.

        Args:
            max_blocks: Stop after this many evaluated blocks (None = no limit).

        Returns:
            Run statistics.
        """
        if max_blocks is not None and max_blocks <= 0:
            raise ValueError(f"max_blocks must be > 0, got {max_blocks}")

        self._running = not self._shutdown_requested
        logger.info(
            "Block driver started",
            extra={"poll_interval_ms": self._poll_interval_ms, "max_blocks": max_blocks},
        )
        try:
            while self._running:
                try:
                    decision = await self.step()
                except FeedExhaustedError as e:
                    logger.info("Block feed exhausted, stopping", extra={"reason": str(e)})
                    break
                except CollaboratorError as e:
                    self.stats.errors += 1
                    self._backoff_state.record_error()
                    logger.warning(
                        "Collaborator call failed",
                        extra={"error": str(e), "attempt": self._backoff_state.attempt},
                    )
                    if self._backoff_state.exhausted(self._backoff_config):
                        logger.error(
                            "Retries exhausted, aborting",
                            extra={"max_retries": self._backoff_config.max_retries},
                        )
                        raise
                    delay_ms = compute_backoff_delay(
                        self._backoff_config, self._backoff_state, rng=self._rng
                    )
                    await self._sleep(delay_ms / 1000)
                    continue

                self._backoff_state.reset()
                if decision is None:
                    await self._sleep(self._poll_interval_ms / 1000)
                    continue
                if max_blocks is not None and self.stats.blocks_evaluated >= max_blocks:
                    break
        finally:
            self._running = False

        logger.info(
            "Block driver stopped",
            extra={
                "blocks_evaluated": self.stats.blocks_evaluated,
                "trades_emitted": self.stats.trades_emitted,
                "trades_executed": self.stats.trades_executed,
                "errors": self.stats.errors,
            },
        )
        return self.stats
