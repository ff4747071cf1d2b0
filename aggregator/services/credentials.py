"""Credential resolution per platform and account.

Static tokens come straight from configuration. OAuth refresh platforms do one
token exchange per aggregation call; the resulting bearer token is shared by
every account of that platform for the duration of the call. Nothing is cached
across calls.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from aggregator.config import AccountRef, AggregatorConfig
from aggregator.errors import CredentialError, UpstreamFetchError
from aggregator.integrations.base import OAUTH_REFRESH, PlatformAdapter
from aggregator.integrations.http import HTTPClient
from aggregator.utils import get_logger

logger = get_logger(__name__)


@dataclass
class ResolvedCredentials:
    """Per-account tokens plus the accounts that have none."""

    tokens: Dict[str, str] = field(default_factory=dict)
    missing: Dict[str, str] = field(default_factory=dict)

    def token_for(self, account: AccountRef) -> Optional[str]:
        return self.tokens.get(account.account_id)


class CredentialResolver:
    def __init__(self, config: AggregatorConfig, http: HTTPClient):
        self.config = config
        self.http = http

    async def exchange_refresh_token(self, adapter: PlatformAdapter) -> str:
        """Trade the configured refresh token for a short-lived access token."""
        platform = adapter.platform_name
        client = self.config.oauth_client(platform)
        token_url = adapter.token_url()
        if client is None or not (client.client_id and client.refresh_token) or not token_url:
            raise CredentialError(f"OAuth client settings missing for {platform}", platform=platform)

        try:
            payload = await self.http.post_form(
                token_url,
                {
                    "grant_type": "refresh_token",
                    "client_id": client.client_id,
                    "client_secret": client.client_secret,
                    "refresh_token": client.refresh_token,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except UpstreamFetchError as e:
            logger.error("Token exchange failed", platform=platform, error=e.message)
            raise CredentialError(f"{platform} token exchange failed: {e.message}", platform=platform) from e

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            logger.error("Token exchange returned no access_token", platform=platform)
            raise CredentialError(f"{platform} token exchange returned no access_token", platform=platform)
        logger.info("Token exchange succeeded", platform=platform)
        return str(token)

    async def resolve(self, adapter: PlatformAdapter, accounts: Sequence[AccountRef]) -> ResolvedCredentials:
        """Tokens for ``accounts``.

        Raises ``CredentialError`` only when the OAuth exchange fails, since its
        one shared token gates every account. Static tokens are per account:
        every account without one is listed in ``missing`` and reported inline
        by the caller, even when none of them has a token.
        """
        resolved = ResolvedCredentials()
        if not accounts:
            return resolved

        if adapter.credential_type == OAUTH_REFRESH:
            token = await self.exchange_refresh_token(adapter)
            resolved.tokens = {a.account_id: token for a in accounts}
            return resolved

        platform_token = self.config.static_token(adapter.platform_name)
        for account in accounts:
            ref = adapter.credential_ref(account)
            token = self.config.static_token(ref) or platform_token
            if token:
                resolved.tokens[account.account_id] = token
            else:
                resolved.missing[account.account_id] = f"No access token configured for credential '{ref}'"

        if resolved.missing:
            logger.warning(
                "Accounts without access token",
                platform=adapter.platform_name,
                missing=len(resolved.missing),
                configured=len(accounts),
            )
        return resolved


__all__ = ["CredentialResolver", "ResolvedCredentials"]
