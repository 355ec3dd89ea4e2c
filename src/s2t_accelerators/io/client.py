"""Outbound client for the S2T accelerator API.

One shared httpx.AsyncClient per process. Every call attaches the API key
header, sends an optional JSON body, awaits the full response and returns
the parsed JSON. Non-2xx responses raise RemoteCallError carrying the API's
``error.message`` when present; transport failures (connect errors,
timeouts) and malformed success bodies propagate unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

import httpx
import orjson
from pydantic import SecretStr

from s2t_accelerators.foundation.errors import JsonMapping, JsonValue, RemoteCallError
from s2t_accelerators.runtime.observability import get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from s2t_accelerators.foundation.config import S2TSettings

API_KEY_HEADER = "X-S2T-API-Key"

log = get_logger("remote")


@runtime_checkable
class RemoteCaller(Protocol):
    """What operations need from the remote side. Tests substitute recording fakes."""

    async def call(self, endpoint: str, method: str = "GET", body: JsonMapping | None = None) -> JsonValue: ...


class RemoteClient:
    """httpx-backed RemoteCaller bound to one base URL and API key.

    Example:
        >>> async with RemoteClient("https://api.example.com/v1", "sk_test") as client:
        ...     catalog = await client.call("/catalog")
    """

    __slots__ = ("_base_url", "_api_key", "_timeout", "_transport", "_client")

    def __init__(
        self,
        base_url: str,
        api_key: str | SecretStr,
        *,
        timeout: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key if isinstance(api_key, SecretStr) else SecretStr(api_key)
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: S2TSettings) -> Self:
        return cls(settings.api_url, settings.api_key, timeout=settings.api_timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc: BaseException | None,
                        tb: TracebackType | None) -> None:
        await self.aclose()

    async def call(self, endpoint: str, method: str = "GET", body: JsonMapping | None = None) -> JsonValue:
        """Issue one request against ``base_url + endpoint`` and return the parsed JSON body.

        Raises:
            RemoteCallError: non-2xx status.
            httpx.HTTPError: connection failure or timeout.
            orjson.JSONDecodeError: 2xx response whose body is not JSON.
        """
        headers = {API_KEY_HEADER: self._api_key.get_secret_value(), "Content-Type": "application/json"}
        content = orjson.dumps(body) if body is not None else None

        response = await self._get_client().request(
            method, f"{self._base_url}{endpoint}", headers=headers, content=content,
        )
        log.debug("Remote call completed", endpoint=endpoint, method=method, status=response.status_code)

        if response.is_success:
            return orjson.loads(response.content)

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            data = None
        raise RemoteCallError.from_status(endpoint, response.status_code, _error_message(data))


def _error_message(data: object) -> str | None:
    """Extract ``error.message`` from an API error body, if present."""
    if isinstance(data, dict) and isinstance(err := data.get("error"), dict):
        if isinstance(msg := err.get("message"), str) and msg:
            return msg
    return None
