"""ReplayFeed - recorded block/price feed.

Serves a pre-recorded sequence of (block, price) observations as both the
BlockSource and the PriceSource of a BlockDriver. Used for dry runs and
backtests of strategy configs without a node connection.

Input format (JSONL, one record per line):
    {"block": 17000000, "price": 1834.25}
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - used at runtime
from typing import TYPE_CHECKING

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from poolbot.driver.collaborators import CollaboratorError, FeedExhaustedError

if TYPE_CHECKING:
    from collections.abc import Iterable


class PriceRecord(BaseModel):
    """One recorded price observation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    block: int = Field(ge=0, description="Block number")
    price: float = Field(description="Lossy pool price at that block")


def load_price_records(path: Path) -> list[PriceRecord]:
    """Load price records from a JSONL file.

    Blank lines are skipped.

    Raises:
        ValueError: On malformed lines, with the offending line number.
    """
    records: list[PriceRecord] = []
    with open(path, "rb") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                records.append(PriceRecord.model_validate(orjson.loads(line)))
            except (orjson.JSONDecodeError, ValidationError) as e:
                raise ValueError(f"{path.name}:{lineno}: invalid price record: {e}") from e
    return records


class ReplayFeed:
    """Block and price source backed by recorded observations.

    Every latest_block() call advances to the next record, so a driver
    sees each recorded block exactly once. Past the last record it
    raises FeedExhaustedError.
    """

    def __init__(self, records: Iterable[PriceRecord]) -> None:
        """Initialize feed.

        Args:
            records: Observations with strictly increasing block numbers.

        Raises:
            ValueError: If block numbers are not strictly increasing.
        """
        self._records = list(records)
        for prev, cur in zip(self._records, self._records[1:], strict=False):
            if cur.block <= prev.block:
                raise ValueError(
                    f"block numbers must be strictly increasing, got {prev.block} then {cur.block}"
                )
        self._prices = {record.block: record.price for record in self._records}
        self._cursor = 0

    @classmethod
    def from_jsonl(cls, path: Path) -> ReplayFeed:
        return cls(load_price_records(path))

    def __len__(self) -> int:
        return len(self._records)

    @property
    def remaining(self) -> int:
        """Records not yet served."""
        return len(self._records) - self._cursor

    async def latest_block(self) -> int:
        if self._cursor >= len(self._records):
            raise FeedExhaustedError(f"replay feed exhausted after {len(self._records)} blocks")
        record = self._records[self._cursor]
        self._cursor += 1
        return record.block

    async def price_at(self, block: int) -> float:
        try:
            return self._prices[block]
        except KeyError:
            raise CollaboratorError(f"no recorded price for block {block}") from None
