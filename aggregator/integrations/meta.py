"""
Meta (Facebook) Marketing API integration.

Tokens are long-lived and configured per account (``credential_ref``), so no
exchange happens at request time. Budgets are in cents. Graph API paging keeps
returning ``paging.cursors.after`` on the last page; only ``paging.next``
signals that another page exists.
"""
from typing import Any, Dict, List, Optional

from aggregator.config import AccountRef, META_GRAPH_VERSION, UPSTREAM_URLS
from aggregator.integrations.base import STATIC, PlatformAdapter, dig, first_cursor
from aggregator.services.normalizer import FieldAliases

CAMPAIGN_FIELDS = "id,name,status,objective,daily_budget,created_time,updated_time"


def graph_account_id(account_id: str) -> str:
    account_id = account_id.strip()
    return account_id if account_id.startswith("act_") else f"act_{account_id}"


class MetaIntegration(PlatformAdapter):
    """Meta ad accounts, grouped by business manager in responses."""

    platform_name = "meta"
    aliases = ("facebook", "fb")
    credential_type = STATIC
    field_aliases = FieldAliases(budget=("daily_budget",))

    def __init__(self, http, *, api_base: Optional[str] = None, graph_version: Optional[str] = None, **kwargs):
        super().__init__(http, **kwargs)
        base = (api_base or UPSTREAM_URLS["meta_api"]).rstrip("/")
        self.api_base = f"{base}/{graph_version or META_GRAPH_VERSION}"

    def credential_ref(self, account: AccountRef) -> str:
        return account.credential_ref or account.label or self.platform_name

    @staticmethod
    def _auth(credential: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {credential}"}

    async def fetch_account_name(self, account: AccountRef, credential: str) -> str:
        data = await self.http.get_json(
            f"{self.api_base}/{graph_account_id(account.account_id)}",
            params={"fields": "name"},
            headers=self._auth(credential),
        )
        name = data.get("name") if isinstance(data, dict) else None
        return str(name) if name else account.account_id

    async def fetch_campaign_page(
        self, account: AccountRef, credential: str, cursor: Optional[str]
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"fields": CAMPAIGN_FIELDS, "limit": self.page_size}
        if cursor:
            params["after"] = cursor
        page = await self.http.get_json(
            f"{self.api_base}/{graph_account_id(account.account_id)}/campaigns",
            params=params,
            headers=self._auth(credential),
        )
        return page if isinstance(page, dict) else {}

    def extract_records(self, page: Dict[str, Any]) -> List[Dict[str, Any]]:
        records = page.get("data") or []
        return [r for r in records if isinstance(r, dict)]

    def next_cursor(self, page: Dict[str, Any]) -> Optional[str]:
        if not dig(page, ("paging", "next")):
            return None
        return first_cursor(page, (("paging", "cursors", "after"),))
