"""
Snapchat Marketing API integration.
OAuth2 refresh-token credentials, micros budgets, cursor paging via
``paging.next_cursor`` (older responses put ``next_cursor`` at the top level).
"""
from typing import Any, Dict, List, Optional

from aggregator.config import AccountRef, UPSTREAM_URLS
from aggregator.integrations.base import OAUTH_REFRESH, PlatformAdapter, dig, first_cursor
from aggregator.services.normalizer import FieldAliases

CURSOR_PATHS = (("paging", "next_cursor"), ("next_cursor",))


class SnapIntegration(PlatformAdapter):
    """Snapchat ad accounts and campaigns."""

    platform_name = "snap"
    aliases = ("snapchat",)
    credential_type = OAUTH_REFRESH
    field_aliases = FieldAliases(budget=("daily_budget_micro",))

    def __init__(self, http, *, api_base: Optional[str] = None, token_url: Optional[str] = None, **kwargs):
        super().__init__(http, **kwargs)
        self.api_base = (api_base or UPSTREAM_URLS["snap_api"]).rstrip("/")
        self._token_url = token_url or UPSTREAM_URLS["snap_token"]

    def token_url(self) -> Optional[str]:
        return self._token_url

    @staticmethod
    def _auth(credential: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {credential}"}

    async def fetch_account_name(self, account: AccountRef, credential: str) -> str:
        data = await self.http.get_json(
            f"{self.api_base}/adaccounts/{account.account_id}",
            headers=self._auth(credential),
        )
        acct = None
        wrapped = dig(data, ("adaccounts",))
        if isinstance(wrapped, list) and wrapped:
            first = wrapped[0]
            acct = first.get("adaccount") if isinstance(first, dict) else None
        if acct is None and isinstance(data, dict):
            acct = data.get("adaccount") or data.get("ad_account") or data
        name = acct.get("name") if isinstance(acct, dict) else None
        return str(name) if name else account.account_id

    async def fetch_campaign_page(
        self, account: AccountRef, credential: str, cursor: Optional[str]
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": self.page_size}
        if cursor:
            params["cursor"] = cursor
        self.logger.debug(
            "Fetching Snapchat campaign page",
            account_id=account.account_id,
            has_cursor=bool(cursor),
        )
        page = await self.http.get_json(
            f"{self.api_base}/adaccounts/{account.account_id}/campaigns",
            params=params,
            headers=self._auth(credential),
        )
        return page if isinstance(page, dict) else {}

    def extract_records(self, page: Dict[str, Any]) -> List[Dict[str, Any]]:
        records = page.get("campaigns") or []
        return [r for r in records if isinstance(r, dict)]

    def unwrap_record(self, raw: Any) -> Any:
        # Listing items arrive as {"sub_request_status": ..., "campaign": {...}}
        if isinstance(raw, dict) and isinstance(raw.get("campaign"), dict):
            return raw["campaign"]
        return raw

    def next_cursor(self, page: Dict[str, Any]) -> Optional[str]:
        return first_cursor(page, CURSOR_PATHS)
