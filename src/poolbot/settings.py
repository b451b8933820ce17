"""Runtime settings read from the environment.

Usage:
    from poolbot.settings import BotSettings

    settings = BotSettings.from_env()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Env vars whose values must never be logged
REDACTED_ENV_VARS = frozenset({"POOLBOT_RPC_URL", "POOLBOT_PRIVATE_KEY"})

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def env_or(var: str, default: str) -> str:
    """Read an environment variable, falling back to a default.

    Logs whether the provided value or the default is used. Values of
    REDACTED_ENV_VARS are never logged.
    """
    value = os.environ.get(var)
    if value is not None:
        logger.info("Using provided value for %s", var)
        return value
    shown = "[REDACTED]" if var in REDACTED_ENV_VARS else default
    logger.info("Env var %s not provided, using default %s", var, shown)
    return default


def _parse_bool(var: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{var} must be a boolean, got {raw!r}")


def _parse_int(var: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{var} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class BotSettings:
    """Settings for the block driver process."""

    # Wait between block polls when no new block is seen
    poll_interval_ms: int = 1000

    # Consecutive collaborator failures tolerated before aborting
    max_retries: int = 10

    log_level: str = "INFO"
    json_logs: bool = True

    def __post_init__(self) -> None:
        """Validate settings at construction time."""
        if not 0 <= self.poll_interval_ms <= 600_000:
            raise ValueError(f"poll_interval_ms must be 0..600000, got {self.poll_interval_ms}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(sorted(_LOG_LEVELS))}, got {self.log_level!r}"
            )

    @classmethod
    def from_env(cls) -> BotSettings:
        """Build settings from POOLBOT_* environment variables."""
        return cls(
            poll_interval_ms=_parse_int(
                "POOLBOT_POLL_INTERVAL_MS", env_or("POOLBOT_POLL_INTERVAL_MS", "1000")
            ),
            max_retries=_parse_int("POOLBOT_MAX_RETRIES", env_or("POOLBOT_MAX_RETRIES", "10")),
            log_level=env_or("POOLBOT_LOG_LEVEL", "INFO").upper(),
            json_logs=_parse_bool("POOLBOT_JSON_LOGS", env_or("POOLBOT_JSON_LOGS", "1")),
        )
