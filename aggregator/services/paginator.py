"""Cursor pagination over one account's campaign listing.

Pages are fetched strictly in order (each cursor comes from the previous
response); every page fetch runs under the linear-backoff retry policy.
"""
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Set

from aggregator.config import AccountRef, MAX_PAGES_PER_ACCOUNT
from aggregator.errors import UpstreamFetchError
from aggregator.integrations.base import PlatformAdapter
from aggregator.utils import get_logger
from aggregator.utils.backoff import retry_async

logger = get_logger(__name__)


class PaginatedFetcher:
    """Walks an adapter's listing endpoint until the cursor runs out."""

    def __init__(
        self,
        adapter: PlatformAdapter,
        *,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_pages: Optional[int] = None,
    ):
        self.adapter = adapter
        self.max_pages = int(max_pages or MAX_PAGES_PER_ACCOUNT)
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    async def _fetch_page(self, account: AccountRef, credential: str, cursor: Optional[str]) -> Dict[str, Any]:
        try:
            return await retry_async(
                lambda: self.adapter.fetch_campaign_page(account, credential, cursor),
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                sleep=self.sleep,
                description=f"{self.adapter.platform_name} campaign page",
            )
        except UpstreamFetchError as e:
            e.platform = e.platform or self.adapter.platform_name
            e.account_id = e.account_id or account.account_id
            raise
        except Exception as e:
            raise UpstreamFetchError(
                str(e) or type(e).__name__,
                platform=self.adapter.platform_name,
                account_id=account.account_id,
            ) from e

    async def iter_records(self, account: AccountRef, credential: str) -> AsyncIterator[Dict[str, Any]]:
        """Yield raw records page by page; a fresh call starts from the first page.

        Stops when the cursor runs out, when the upstream hands back a cursor
        already requested during this walk, or after ``max_pages`` pages.
        """
        cursor: Optional[str] = None
        seen: Set[str] = set()
        pages = 0
        while True:
            page = await self._fetch_page(account, credential, cursor)
            pages += 1
            for record in self.adapter.extract_records(page):
                yield record
            next_cursor = self.adapter.next_cursor(page)
            if not next_cursor:
                break
            if next_cursor in seen or next_cursor == cursor:
                logger.warning(
                    "Upstream returned an already requested cursor; stopping",
                    platform=self.adapter.platform_name,
                    account_id=account.account_id,
                    cursor=next_cursor,
                    pages=pages,
                )
                break
            if pages >= self.max_pages:
                logger.warning(
                    "Page limit reached; stopping",
                    platform=self.adapter.platform_name,
                    account_id=account.account_id,
                    max_pages=self.max_pages,
                )
                break
            seen.add(next_cursor)
            cursor = next_cursor
        logger.debug(
            "Listing exhausted",
            platform=self.adapter.platform_name,
            account_id=account.account_id,
            pages=pages,
        )

    async def fetch_all(self, account: AccountRef, credential: str) -> List[Dict[str, Any]]:
        return [record async for record in self.iter_records(account, credential)]


__all__ = ["PaginatedFetcher"]
