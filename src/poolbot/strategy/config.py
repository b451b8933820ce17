"""Strategy configuration tree and factory.

The configuration is an externally-tagged tree with one key per node
naming the strategy variant:

    ema:
      carry: 0.9
      inner:
        threshold:
          buy: {at: 100, amount: 5}
          sell: {at: 120, amount: {numerator: 5, denominator: 2}}

Amounts accept a plain unsigned integer or an explicit numerator/denominator
pair. Unknown keys are rejected. Numeric ranges (carry, zero denominators)
are not validated and pass through to runtime behavior.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import orjson
import yaml  # type: ignore[import-untyped]
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    ValidationError,
    model_validator,
)

from poolbot.strategy.base import U64_MAX, Fraction
from poolbot.strategy.ema import ExponentialMovingAverage
from poolbot.strategy.leaf import (
    AlwaysBuy,
    AlwaysSell,
    NullStrategy,
    ThresholdPoint,
    ThresholdStrategy,
)

if TYPE_CHECKING:
    from poolbot.strategy.base import Strategy

logger = logging.getLogger(__name__)

# Nesting guard for ema chains; real configs are a handful of levels deep
MAX_CONFIG_DEPTH = 32

STRATEGY_KINDS: tuple[str, ...] = ("null", "always_buy", "always_sell", "threshold", "ema")

U64 = Annotated[StrictInt, Field(ge=0, le=U64_MAX)]


class ConfigError(ValueError):
    """Raised when a strategy configuration cannot be loaded or built."""


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FractionConfig(_FrozenModel):
    """Explicit numerator/denominator amount."""

    numerator: U64
    denominator: U64


AmountConfig = U64 | FractionConfig


def to_fraction(amount: AmountConfig) -> Fraction:
    """Normalize a configured amount to a Fraction."""
    if isinstance(amount, FractionConfig):
        return Fraction(amount.numerator, amount.denominator)
    return Fraction.from_int(amount)


class NullConfig(_FrozenModel):
    """Marker for the null strategy (no fields)."""


class ThresholdPointConfig(_FrozenModel):
    """One side of a threshold strategy."""

    at: StrictFloat = Field(description="Price level that triggers the trade")
    amount: AmountConfig = Field(description="Amount traded when triggered")


class ThresholdConfig(_FrozenModel):
    """Threshold strategy; either side may be omitted."""

    buy: ThresholdPointConfig | None = None
    sell: ThresholdPointConfig | None = None


class EmaConfig(_FrozenModel):
    """Exponential moving average wrapping a nested strategy."""

    carry: StrictFloat = Field(description="Weight of the previous average")
    inner: StrategyConfig


class StrategyConfig(_FrozenModel):
    """One node of the strategy tree. Exactly one variant key must be set."""

    null: NullConfig | None = None
    always_buy: AmountConfig | None = None
    always_sell: AmountConfig | None = None
    threshold: ThresholdConfig | None = None
    ema: EmaConfig | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_tag(cls, data: Any) -> Any:
        """Accept bare "null" and an empty null node.

        Variant keys count as set even when their value is null, so a
        stray ``ema:`` next to another variant is an error.
        """
        if data is None:
            raise ValueError("strategy node is empty; use 'null: {}' for the null strategy")
        if isinstance(data, str):
            if data != "null":
                raise ValueError(
                    f"unknown strategy {data!r}; expected one of {', '.join(STRATEGY_KINDS)}"
                )
            return {"null": {}}
        if isinstance(data, dict):
            present = [kind for kind in STRATEGY_KINDS if kind in data]
            if len(present) > 1:
                raise ValueError(
                    f"exactly one of {', '.join(STRATEGY_KINDS)} must be set, "
                    f"got {', '.join(present)}"
                )
            if "null" in data and data["null"] is None:
                return {**data, "null": {}}
        return data

    @model_validator(mode="after")
    def check_single_variant(self) -> StrategyConfig:
        """Ensure exactly one variant is configured."""
        chosen = [kind for kind in STRATEGY_KINDS if getattr(self, kind) is not None]
        if len(chosen) != 1:
            found = ", ".join(chosen) if chosen else "none"
            raise ValueError(
                f"exactly one of {', '.join(STRATEGY_KINDS)} must be set, got {found}"
            )
        return self

    @property
    def kind(self) -> str:
        """Name of the configured variant."""
        return next(kind for kind in STRATEGY_KINDS if getattr(self, kind) is not None)


EmaConfig.model_rebuild()


def _build_threshold_point(point: ThresholdPointConfig | None) -> ThresholdPoint | None:
    if point is None:
        return None
    return ThresholdPoint(at=point.at, amount=to_fraction(point.amount))


def build_strategy(config: StrategyConfig, *, _depth: int = 0) -> Strategy:
    """Build a strategy from its configuration tree.

    ema nodes build their inner strategy first and then wrap it.

    Args:
        config: Validated configuration tree.

    Returns:
        Strategy instance ready to be driven once per block.

    Raises:
        ConfigError: If the tree is nested deeper than MAX_CONFIG_DEPTH.
    """
    if _depth > MAX_CONFIG_DEPTH:
        raise ConfigError(f"strategy config nested deeper than {MAX_CONFIG_DEPTH} levels")

    if config.null is not None:
        return NullStrategy()
    if config.always_buy is not None:
        return AlwaysBuy(to_fraction(config.always_buy))
    if config.always_sell is not None:
        return AlwaysSell(to_fraction(config.always_sell))
    if config.threshold is not None:
        return ThresholdStrategy(
            buy=_build_threshold_point(config.threshold.buy),
            sell=_build_threshold_point(config.threshold.sell),
        )
    if config.ema is not None:
        inner = build_strategy(config.ema.inner, _depth=_depth + 1)
        return ExponentialMovingAverage(carry=config.ema.carry, inner=inner)
    # check_single_variant guarantees one branch above matched
    raise ConfigError("strategy config has no variant set")


def parse_strategy_config(data: Any) -> StrategyConfig:
    """Validate a raw document (dict or bare tag) into a StrategyConfig.

    Raises:
        ConfigError: If the document does not match the expected shape.
    """
    try:
        return StrategyConfig.model_validate(data)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"invalid strategy config: {details}") from e
    except RecursionError as e:
        raise ConfigError("invalid strategy config: nesting too deep") from e


def load_strategy_config(path: Path) -> StrategyConfig:
    """Load and validate a strategy config file (.yaml, .yml or .json).

    Raises:
        ConfigError: If the file is unreadable, unparsable or invalid.
    """
    suffix = path.suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise ConfigError(f"unsupported strategy config format: {path.name}")

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigError(f"cannot read strategy config {path}: {e}") from e

    try:
        data = orjson.loads(raw) if suffix == ".json" else yaml.safe_load(raw)
    except (orjson.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot parse strategy config {path}: {e}") from e

    return parse_strategy_config(data)


def load_strategy(path: Path) -> Strategy:
    """Load a strategy config file and build the strategy."""
    config = load_strategy_config(path)
    strategy = build_strategy(config)
    logger.info(
        "Strategy built",
        extra={"strategy_kind": config.kind, "strategy_class": type(strategy).__name__},
    )
    return strategy
