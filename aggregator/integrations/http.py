"""
Shared aiohttp client for upstream ad-platform calls.
Every call carries a bounded timeout; transport, status and decoding failures
are mapped onto ``UpstreamFetchError`` so callers deal with one error family.
"""
import asyncio
from typing import Any, Dict, Mapping, Optional, Protocol

import aiohttp

from aggregator.config import UPSTREAM_TIMEOUT_SECONDS
from aggregator.errors import UpstreamFetchError, UpstreamHTTPError
from aggregator.utils import get_logger

logger = get_logger(__name__)

USER_AGENT = "Campaign-Aggregator/1.0"


class HTTPClient(Protocol):
    async def get_json(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any: ...

    async def post_form(
        self,
        url: str,
        data: Mapping[str, str],
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any: ...


class UpstreamClient:
    """aiohttp-backed ``HTTPClient``. One instance is shared per process."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds if timeout_seconds is not None else UPSTREAM_TIMEOUT_SECONDS
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def get_json(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return await self._request("GET", url, params=params, headers=headers)

    async def post_form(
        self,
        url: str,
        data: Mapping[str, str],
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return await self._request("POST", url, data=dict(data), headers=headers)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Dict[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        session = self._get_session()
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        try:
            async with session.request(
                method,
                url,
                params=query or None,
                data=data,
                headers=dict(headers or {}),
                timeout=self.timeout,
            ) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    logger.warning(
                        "Upstream returned error status",
                        method=method,
                        url=url,
                        status_code=response.status,
                    )
                    raise UpstreamHTTPError(response.status, body, url)
                return await response.json(content_type=None)

        except asyncio.TimeoutError:
            logger.warning("Upstream request timed out", method=method, url=url)
            raise UpstreamFetchError(
                f"Upstream request timed out after {self.timeout.total}s: {method} {url}"
            )

        except aiohttp.ClientError as e:
            logger.warning("Upstream client error", method=method, url=url, error=str(e))
            raise UpstreamFetchError(f"Upstream client error: {e}") from e

        except ValueError as e:
            # invalid JSON body on a 2xx
            raise UpstreamFetchError(f"Upstream returned invalid JSON: {e}") from e


__all__ = ["HTTPClient", "UpstreamClient", "USER_AGENT"]
