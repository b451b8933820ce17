"""
Structured logging configuration for poolbot.

Provides JSON-formatted structured logging with:
- Secret filtering (private keys, RPC credentials never reach the log)
- RPC URLs reduced to their host (providers embed API keys in the path)
- Bounded output (long lists and deep dicts are summarized)

Usage:
    from poolbot.logging_config import setup_logging, get_logger

    setup_logging()  # Call once at startup
    logger = get_logger(__name__)
    logger.info("message", extra={"key": "value"})
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

# Matches URLs: https://eth-mainnet.example.io/v2/<key>
_URL_PATTERN = re.compile(r"(https?|wss?)://[^\s\"'<>]+")

_SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Raw 32-byte hex secrets (private keys)
    (re.compile(r"\b(0x)?[0-9a-fA-F]{64}\b"), "[HEX_SECRET]"),
    # API keys (various formats)
    (re.compile(r"\b(api[_-]?key|apikey)[=:]\s*['\"]?[\w\-]+['\"]?", re.I), "[API_KEY]"),
    # Bearer tokens
    (re.compile(r"\b(bearer|token)[=:\s]+['\"]?[\w\-\.]+['\"]?", re.I), "[TOKEN]"),
    # Authorization headers
    (re.compile(r"(authorization|auth)[=:\s]+['\"]?[\w\-\.]+['\"]?", re.I), "[AUTH]"),
]

# Fields that should NEVER appear in logs (exact or substring match)
BLOCKED_FIELDS: frozenset[str] = frozenset(
    {
        "private_key",
        "privkey",
        "mnemonic",
        "seed_phrase",
        "keystore",
        "api_key",
        "secret",
        "token",
        "password",
        "authorization",
        "bearer",
        "credential",
    }
)

# Fields whose raw value is replaced by a placeholder
REDACTED_VALUE_FIELDS: dict[str, str] = {
    "calldata": "[CALLDATA]",
    "raw_tx": "[RAW_TX]",
    "payload": "[PAYLOAD]",
    "body": "[BODY]",
}

# Field names that carry an endpoint URL and are reduced to its host
URL_FIELDS: frozenset[str] = frozenset({"url", "rpc_url", "endpoint"})

# Standard LogRecord attributes, not treated as extra fields
_RECORD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)

_MAX_LIST_ITEMS = 10
_MAX_DEPTH = 3


def _url_host(url: str) -> str:
    """Reduce a URL to its host.

    RPC providers put API keys in the path or query, so only the host
    is safe to log.
    """
    host = urlsplit(url).hostname
    return host or "[URL]"


def _sanitize_text(text: str) -> str:
    """Sanitize free-form text (msg, exc) to remove sensitive data.

    Removes/normalizes:
    - URLs → host only
    - 64-hex-digit secrets → [HEX_SECRET]
    - API keys, tokens, auth headers → placeholders
    """
    if not text:
        return text

    result = _URL_PATTERN.sub(lambda m: _url_host(m.group(0)), text)
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _filter_log_record(record: dict[str, Any], *, _depth: int = 0) -> dict[str, Any]:
    """Filter sensitive fields from a log record's extra data.

    Recursively filters nested dicts up to depth 3.
    """
    if _depth > _MAX_DEPTH:
        return {"_truncated": "max depth exceeded"}

    filtered: dict[str, Any] = {}

    for key, value in record.items():
        key_lower = key.lower()

        if any(blocked in key_lower for blocked in BLOCKED_FIELDS):
            continue

        if key_lower in REDACTED_VALUE_FIELDS:
            filtered[key] = REDACTED_VALUE_FIELDS[key_lower]
            continue

        if key_lower in URL_FIELDS and isinstance(value, str):
            filtered[key] = _url_host(value)
            continue

        if isinstance(value, (int, float, bool, type(None))):
            filtered[key] = value
        elif isinstance(value, str):
            filtered[key] = _sanitize_text(value)
        elif isinstance(value, (list, tuple)):
            if len(value) <= _MAX_LIST_ITEMS:
                filtered[key] = list(value)
            else:
                filtered[key] = f"[list:{len(value)} items]"
        elif isinstance(value, dict):
            filtered[key] = _filter_log_record(value, _depth=_depth + 1)
        else:
            filtered[key] = _sanitize_text(str(value))

    return filtered


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Produces one JSON object per line:
    {"ts":"2024-01-01T00:00:00.000+00:00","level":"INFO","logger":"module","msg":"...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_dict: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": _sanitize_text(record.getMessage()),
        }

        if record.levelno >= logging.WARNING:
            log_dict["file"] = record.filename
            log_dict["line"] = record.lineno

        if record.exc_info:
            log_dict["exc"] = _sanitize_text(self.formatException(record.exc_info))

        extra = _extra_fields(record)
        if extra:
            log_dict.update(_filter_log_record(extra))

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for development and terminals."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single readable line."""
        base = f"{record.levelname:8s} {record.name}: {_sanitize_text(record.getMessage())}"

        extra = _extra_fields(record)
        if extra:
            filtered = _filter_log_record(extra)
            if filtered:
                extra_str = " ".join(f"{k}={v}" for k, v in filtered.items())
                base = f"{base} | {extra_str}"

        return base


def setup_logging(
    *,
    level: int | str = logging.INFO,
    json_format: bool = True,
    stream: Any = None,
) -> None:
    """Configure structured logging for the application.

    Call once at process startup.

    Args:
        level: Log level (default INFO).
        json_format: Use JSON formatter (default True for production).
        stream: Output stream (default stderr).
    """
    if stream is None:
        stream = sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter() if json_format else SimpleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
