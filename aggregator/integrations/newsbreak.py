"""
NewsBreak business API integration.
One long-lived integration token for every account, sent as ``Access-Token``.
Responses use an envelope ``{"code": 0, "data": {...}}``; budgets are in cents
and timestamps use camelCase names.
"""
from typing import Any, Dict, List, Optional

from aggregator.config import AccountRef, UPSTREAM_URLS
from aggregator.errors import UpstreamFetchError
from aggregator.integrations.base import STATIC, PlatformAdapter, dig, first_cursor
from aggregator.services.normalizer import FieldAliases

CURSOR_PATHS = (("next_cursor",), ("data", "next_cursor"), ("paging", "next_cursor"))


class NewsBreakIntegration(PlatformAdapter):
    """NewsBreak ad accounts and campaigns."""

    platform_name = "newsbreak"
    aliases = ("nb", "news_break")
    credential_type = STATIC
    field_aliases = FieldAliases(budget=("budget", "dailyBudget"))

    def __init__(self, http, *, api_base: Optional[str] = None, **kwargs):
        super().__init__(http, **kwargs)
        self.api_base = (api_base or UPSTREAM_URLS["newsbreak_api"]).rstrip("/")

    @staticmethod
    def _auth(credential: str) -> Dict[str, str]:
        return {"Access-Token": credential}

    def _unwrap(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            return {}
        code = payload.get("code")
        if code not in (None, 0, "0"):
            raise UpstreamFetchError(
                f"NewsBreak API error {code}: {payload.get('errMsg') or payload.get('message') or 'unknown'}",
                platform=self.platform_name,
            )
        return payload

    async def fetch_account_name(self, account: AccountRef, credential: str) -> str:
        payload = self._unwrap(await self.http.get_json(
            f"{self.api_base}/ad-account/get",
            params={"adAccountId": account.account_id},
            headers=self._auth(credential),
        ))
        name = dig(payload, ("data", "name"))
        return str(name) if name else account.account_id

    async def fetch_campaign_page(
        self, account: AccountRef, credential: str, cursor: Optional[str]
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"adAccountId": account.account_id, "pageSize": self.page_size}
        if cursor:
            params["cursor"] = cursor
        return self._unwrap(await self.http.get_json(
            f"{self.api_base}/campaign/getList",
            params=params,
            headers=self._auth(credential),
        ))

    def extract_records(self, page: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = page.get("data")
        if isinstance(data, dict):
            records = data.get("list") or data.get("rows") or []
        elif isinstance(data, list):
            records = data
        else:
            records = []
        return [r for r in records if isinstance(r, dict)]

    def next_cursor(self, page: Dict[str, Any]) -> Optional[str]:
        return first_cursor(page, CURSOR_PATHS)
