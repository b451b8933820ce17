"""Tests for the recorded block/price feed."""

from __future__ import annotations

from pathlib import Path

import pytest

from poolbot.driver import (
    CollaboratorError,
    FeedExhaustedError,
    PriceRecord,
    ReplayFeed,
    load_price_records,
)

SAMPLE = Path(__file__).parent.parent / "fixtures" / "prices_sample.jsonl"


def make_feed(*pairs: tuple[int, float]) -> ReplayFeed:
    return ReplayFeed(PriceRecord(block=b, price=p) for b, p in pairs)


class TestLoadPriceRecords:
    def test_loads_sample_skipping_blank_lines(self) -> None:
        records = load_price_records(SAMPLE)
        assert [r.block for r in records] == [
            17000000,
            17000001,
            17000002,
            17000004,
            17000005,
        ]
        assert records[0].price == 110.0

    def test_reports_line_number(self, tmp_path: Path) -> None:
        path = tmp_path / "prices.jsonl"
        path.write_text('{"block": 1, "price": 1.0}\n{"block": 2}\n')
        with pytest.raises(ValueError, match="prices.jsonl:2"):
            load_price_records(path)

    def test_rejects_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "prices.jsonl"
        path.write_text("{not json}\n")
        with pytest.raises(ValueError, match="invalid price record"):
            load_price_records(path)

    def test_rejects_unknown_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "prices.jsonl"
        path.write_text('{"block": 1, "price": 1.0, "tick": 5}\n')
        with pytest.raises(ValueError, match="invalid price record"):
            load_price_records(path)


class TestReplayFeed:
    @pytest.mark.asyncio
    async def test_serves_each_block_once(self) -> None:
        feed = make_feed((10, 1.0), (11, 2.0), (15, 3.0))
        blocks = [await feed.latest_block() for _ in range(3)]
        assert blocks == [10, 11, 15]
        assert feed.remaining == 0

    @pytest.mark.asyncio
    async def test_exhausted(self) -> None:
        feed = make_feed((10, 1.0))
        await feed.latest_block()
        with pytest.raises(FeedExhaustedError):
            await feed.latest_block()

    @pytest.mark.asyncio
    async def test_price_lookup(self) -> None:
        feed = make_feed((10, 1.5), (11, 2.5))
        assert await feed.price_at(11) == 2.5

    @pytest.mark.asyncio
    async def test_unknown_block_is_collaborator_error(self) -> None:
        feed = make_feed((10, 1.5))
        with pytest.raises(CollaboratorError, match="no recorded price for block 99"):
            await feed.price_at(99)

    def test_rejects_non_increasing_blocks(self) -> None:
        with pytest.raises(ValueError, match="strictly increasing"):
            make_feed((10, 1.0), (10, 2.0))
        with pytest.raises(ValueError, match="strictly increasing"):
            make_feed((10, 1.0), (9, 2.0))

    def test_from_jsonl(self) -> None:
        feed = ReplayFeed.from_jsonl(SAMPLE)
        assert len(feed) == 5
        assert feed.remaining == 5

    def test_empty_feed(self) -> None:
        assert len(ReplayFeed([])) == 0
