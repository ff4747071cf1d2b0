from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from aggregator.config import AccountRef, MINOR_UNIT_FACTORS, PAGE_SIZES
from aggregator.integrations.http import HTTPClient
from aggregator.models.schemas.campaigns import Campaign
from aggregator.services.normalizer import FieldAliases, filter_and_normalize, normalize_record
from aggregator.utils import get_logger

STATIC = "static"
OAUTH_REFRESH = "oauth_refresh"


def dig(obj: Any, path: Sequence[str]) -> Any:
    """Follow ``path`` through nested dicts; None as soon as a step is missing."""
    current = obj
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_cursor(page: Any, paths: Sequence[Sequence[str]]) -> Optional[str]:
    """First non-empty cursor found along ``paths`` (tried in order)."""
    for path in paths:
        value = dig(page, path)
        if value not in (None, ""):
            return str(value)
    return None


class PlatformAdapter(ABC):
    """One upstream ad platform: listing, cursor and field conventions.

    Retry, pagination walking and fan-out live in the services layer; adapters
    only know how to talk to their platform.
    """

    platform_name: str = ""
    aliases: Tuple[str, ...] = ()
    credential_type: str = STATIC
    field_aliases: FieldAliases = FieldAliases()

    def __init__(
        self,
        http: HTTPClient,
        *,
        page_size: Optional[int] = None,
        minor_unit_factor: Optional[int] = None,
    ):
        self.http = http
        self.page_size = int(page_size or PAGE_SIZES[self.platform_name])
        self.minor_unit_factor = int(minor_unit_factor or MINOR_UNIT_FACTORS[self.platform_name])
        self.logger = get_logger(f"integration.{self.platform_name}")

    def token_url(self) -> Optional[str]:
        """Token exchange endpoint for ``oauth_refresh`` platforms."""
        return None

    def credential_ref(self, account: AccountRef) -> str:
        """Key into the static token table for ``account``."""
        return self.platform_name

    @abstractmethod
    async def fetch_account_name(self, account: AccountRef, credential: str) -> str:
        """Human-readable account name; may raise on upstream failure."""

    @abstractmethod
    async def fetch_campaign_page(
        self, account: AccountRef, credential: str, cursor: Optional[str]
    ) -> Dict[str, Any]:
        """One raw listing page starting at ``cursor`` (None for the first page)."""

    @abstractmethod
    def extract_records(self, page: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Raw campaign records contained in ``page``."""

    @abstractmethod
    def next_cursor(self, page: Dict[str, Any]) -> Optional[str]:
        """Cursor of the following page, or None on the last page."""

    def unwrap_record(self, raw: Any) -> Any:
        return raw

    def normalize_record(self, raw: Dict[str, Any]) -> Campaign:
        return normalize_record(self.unwrap_record(raw), self.field_aliases, self.minor_unit_factor)

    def normalize_records(self, records: List[Dict[str, Any]], *, include_all: bool = False) -> List[Campaign]:
        return filter_and_normalize(
            (self.unwrap_record(r) for r in records),
            self.field_aliases,
            self.minor_unit_factor,
            include_all=include_all,
        )
