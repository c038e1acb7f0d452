"""HTTP transport for the Gatz JSON API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pygatz._redact import redact_for_log
from pygatz.config import GatzConfig
from pygatz.exceptions import GatzTransportError

_logger = logging.getLogger(__name__)

USER_AGENT = "pygatz"


class Transport(Protocol):
    """Structural transport interface used by the gateway.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`JsonTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> dict[str, Any]:
        ...


class JsonTransport:
    """GET requests returning a JSON object, with errors mapped to :class:`GatzTransportError`."""

    def __init__(
        self,
        config: GatzConfig,
        http_session: aiohttp.ClientSession,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._http = http_session
        self._headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
            **(headers or {}),
        }
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> dict[str, Any]:
        url = f"{self._config.base_url}{endpoint}"
        _logger.debug("GET %s", url)
        if self._config.api_trace_enabled:
            _logger.debug("GET %s params=%s", endpoint, redact_for_log(dict(params)))

        try:
            async with self._http.get(url, params=dict(params), headers=self._headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise GatzTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except GatzTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise GatzTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GatzTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(body, dict):
            raise GatzTransportError(
                f"Expected a JSON object from {endpoint}, got {type(body).__name__}",
                endpoint=endpoint,
            )

        if self._config.api_trace_enabled:
            _logger.debug("Response from %s: %s", endpoint, redact_for_log(body))
        return body
