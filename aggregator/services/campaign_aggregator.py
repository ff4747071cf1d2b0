"""Campaign aggregation driver.

For one platform per call: resolve credentials, fan out over every configured
account concurrently (name lookup and listing run side by side per account),
normalize and filter the records, then assemble a ``PlatformResult``.

Account-level failures never escape ``_process_account``; they become an
inline ``error`` with an empty campaign list. Platform-level failures
(unsupported platform, credentials) propagate to the caller.
"""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from aggregator.config import AccountRef, AggregatorConfig
from aggregator.integrations.base import PlatformAdapter
from aggregator.integrations.http import HTTPClient
from aggregator.integrations.platforms import PlatformRegistry
from aggregator.models.schemas.campaigns import AccountResult, Campaign, PlatformResult
from aggregator.services.credentials import CredentialResolver
from aggregator.services.paginator import PaginatedFetcher
from aggregator.utils import get_logger, log_performance
from aggregator.utils.time import format_elapsed, iso_utc, utc_now

logger = get_logger(__name__)

BUSINESS_MANAGER_PLATFORMS = frozenset({"meta"})
UNASSIGNED_BUSINESS_MANAGER = "Unassigned"


class CampaignAggregator:
    def __init__(
        self,
        config: AggregatorConfig,
        registry: PlatformRegistry,
        credentials: CredentialResolver,
        *,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.registry = registry
        self.credentials = credentials
        self._fetcher_options = {"max_attempts": max_attempts, "base_delay": base_delay, "sleep": sleep}

    def fetcher_for(self, adapter: PlatformAdapter) -> PaginatedFetcher:
        return PaginatedFetcher(adapter, **self._fetcher_options)

    async def aggregate(self, platform: Optional[str], *, include_all: bool = False) -> PlatformResult:
        """Aggregate campaigns of every configured account of ``platform``.

        Raises:
            UnsupportedPlatformError: unknown platform, before any upstream call.
            CredentialError: no credential could be obtained for the platform.
        """
        adapter = self.registry.resolve(platform)
        name = adapter.platform_name
        accounts = self.config.accounts_for(name)
        started = utc_now()
        start = time.time()

        logger.info(
            "Aggregation started",
            platform=name,
            accounts=len(accounts),
            include_all=include_all,
        )

        results: Dict[str, AccountResult] = {}
        if accounts:
            resolved = await self.credentials.resolve(adapter, accounts)
            fetcher = self.fetcher_for(adapter)
            pairs = await asyncio.gather(*(
                self._process_account(adapter, fetcher, account, resolved.token_for(account),
                                      resolved.missing.get(account.account_id), include_all)
                for account in accounts
            ))
            results = dict(pairs)

        result = PlatformResult(
            platform=name,
            accounts=results,
            total_campaigns=sum(len(r.campaigns) for r in results.values()),
            fetched_at=iso_utc(),
        )
        if name in BUSINESS_MANAGER_PLATFORMS:
            result.business_managers = self._group_by_business_manager(accounts, results)

        failed = sum(1 for r in results.values() if r.error is not None)
        log_performance(
            operation="aggregate_campaigns",
            duration_ms=(time.time() - start) * 1000,
            additional_data={"platform": name, "accounts": len(results), "failed_accounts": failed},
        )
        logger.info(
            "Aggregation completed",
            platform=name,
            total_campaigns=result.total_campaigns,
            failed_accounts=failed,
            elapsed=format_elapsed(started),
        )
        return result

    async def _process_account(
        self,
        adapter: PlatformAdapter,
        fetcher: PaginatedFetcher,
        account: AccountRef,
        credential: Optional[str],
        credential_error: Optional[str],
        include_all: bool,
    ) -> Tuple[str, AccountResult]:
        label = account.label or None
        if credential is None:
            logger.warning(
                "Account skipped: no credential",
                platform=adapter.platform_name,
                account_id=account.account_id,
            )
            return account.account_id, AccountResult(
                account_name=account.account_id,
                label=label,
                error=credential_error or "No access token configured",
            )

        account_name, (campaigns, error) = await asyncio.gather(
            self._account_name(adapter, account, credential),
            self._account_campaigns(adapter, fetcher, account, credential, include_all),
        )
        return account.account_id, AccountResult(
            account_name=account_name,
            campaigns=campaigns,
            label=label,
            error=error,
        )

    async def _account_name(self, adapter: PlatformAdapter, account: AccountRef, credential: str) -> str:
        try:
            return await adapter.fetch_account_name(account, credential)
        except Exception as e:
            logger.warning(
                "Account name lookup failed; using account id",
                platform=adapter.platform_name,
                account_id=account.account_id,
                error=str(e),
            )
            return account.account_id

    async def _account_campaigns(
        self,
        adapter: PlatformAdapter,
        fetcher: PaginatedFetcher,
        account: AccountRef,
        credential: str,
        include_all: bool,
    ) -> Tuple[List[Campaign], Optional[str]]:
        try:
            records = await fetcher.fetch_all(account, credential)
            return adapter.normalize_records(records, include_all=include_all), None
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or type(e).__name__
            logger.error(
                "Account campaign listing failed",
                platform=adapter.platform_name,
                account_id=account.account_id,
                error=message,
                error_type=type(e).__name__,
            )
            return [], message

    @staticmethod
    def _group_by_business_manager(
        accounts: Tuple[AccountRef, ...], results: Dict[str, AccountResult]
    ) -> Dict[str, Dict[str, Dict[str, AccountResult]]]:
        groups: Dict[str, Dict[str, Dict[str, AccountResult]]] = {}
        for account in accounts:
            if account.account_id not in results:
                continue
            bm = account.label or UNASSIGNED_BUSINESS_MANAGER
            groups.setdefault(bm, {"accounts": {}})["accounts"][account.account_id] = results[account.account_id]
        return groups


def build_aggregator(config: AggregatorConfig, http: HTTPClient, **options) -> CampaignAggregator:
    """Wire registry, credential resolver and aggregator around one HTTP client."""
    return CampaignAggregator(
        config,
        PlatformRegistry(http),
        CredentialResolver(config, http),
        **options,
    )


__all__ = ["CampaignAggregator", "build_aggregator"]
