"""LoggingExecutor - dry-run execution collaborator.

Logs every trade intent instead of building and submitting a swap.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from poolbot.strategy.base import Trade

logger = logging.getLogger(__name__)


class LoggingExecutor:
    """Executor that records intents in the log and counts them."""

    def __init__(self, *, pool: str = "") -> None:
        """Initialize executor.

        Args:
            pool: Pool label included in log lines.
        """
        self._pool = pool
        self.buys = 0
        self.sells = 0

    async def execute(self, block: int, trade: Trade) -> None:
        if trade.is_buy:
            self.buys += 1
        else:
            self.sells += 1
        logger.info(
            "Trade intent (dry run)",
            extra={"block": block, "pool": self._pool, **trade.as_log_fields()},
        )
