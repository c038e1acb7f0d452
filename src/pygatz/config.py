"""Client configuration for pygatz."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pygatz.exceptions import GatzConfigError

#: Default lifetime of a memoized feed response, in seconds.
DEFAULT_FEED_CACHE_TTL: float = 30.0


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise GatzConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class GatzConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        API base URL used by :class:`pygatz.gateway.HttpGateway`.
    feed_cache_ttl : float
        Seconds a feed response stays fresh for soft refreshes.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    api_trace_enabled : bool
        Log redacted request parameters and response payloads at DEBUG.
    """

    base_url: str = "https://api.gatz.chat"
    feed_cache_ttl: float = DEFAULT_FEED_CACHE_TTL
    request_timeout: float = 20.0
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.feed_cache_ttl < 0:
            raise GatzConfigError("feed_cache_ttl must be >= 0")
        if self.request_timeout <= 0:
            raise GatzConfigError("request_timeout must be > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> GatzConfig:
        """Create configuration from environment variables.

        Reads ``GATZ_BASE_URL``, ``GATZ_FEED_CACHE_TTL``,
        ``GATZ_REQUEST_TIMEOUT`` and ``GATZ_API_TRACE_ENABLED``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("GATZ_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        for env_key, field_name in (
            ("GATZ_FEED_CACHE_TTL", "feed_cache_ttl"),
            ("GATZ_REQUEST_TIMEOUT", "request_timeout"),
        ):
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("GATZ_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
