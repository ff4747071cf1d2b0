"""Core application configuration & upstream integration settings.

Tunables that may evolve (retry policy, timeouts, page sizes, currency
factors, CORS allow-list) are module constants read from the environment so
tests can monkeypatch them. Account and credential tables are NOT module
state: they are loaded once into an immutable ``AggregatorConfig`` and handed
to the aggregator at construction time.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Mapping

from aggregator.errors import ConfigurationError

SERVICE_NAME: Final = "campaign-aggregator"
SERVICE_VERSION: Final = "1.0.0"

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE") or None

# ------------------------------- Retry Policy ----------------------------- #
# Linear backoff: delay before attempt n+1 is base_delay_seconds * n.
RETRY_POLICY: dict[str, int | float] = {
    "max_attempts": 3,
    "base_delay_seconds": 0.6,
}

# Bounded timeout applied to every upstream HTTP call (token, page, account)
UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "20"))

# Upper bound on listing pages walked per account
MAX_PAGES_PER_ACCOUNT: int = int(os.getenv("MAX_PAGES_PER_ACCOUNT", "200"))

# ------------------------------- Upstreams -------------------------------- #
PAGE_SIZES: dict[str, int] = {
    "snap": 1000,
    "meta": 500,
    "newsbreak": 500,
}

# Budget minor units per major currency unit
MINOR_UNIT_FACTORS: dict[str, int] = {
    "snap": 1_000_000,  # micros
    "meta": 100,        # cents
    "newsbreak": 100,   # cents
}

UPSTREAM_URLS: dict[str, str] = {
    "snap_api": os.getenv("SNAP_API_BASE", "https://adsapi.snapchat.com/v1"),
    "snap_token": os.getenv("SNAP_TOKEN_URL", "https://accounts.snapchat.com/login/oauth2/access_token"),
    "meta_api": os.getenv("META_GRAPH_BASE", "https://graph.facebook.com"),
    "newsbreak_api": os.getenv("NEWSBREAK_API_BASE", "https://business.newsbreak.com/business-api/v1"),
}

META_GRAPH_VERSION: str = os.getenv("META_GRAPH_VERSION", "v19.0")

# ------------------------------ HTTP surface ------------------------------ #
CACHE_CONTROL: Final = "private, max-age=120"

CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGIN", "*").split(",") if o.strip()] or ["*"]
CORS_ALLOW_METHODS: Final = "GET,OPTIONS"
CORS_ALLOW_HEADERS: Final = "Content-Type, Authorization"


# ------------------------------ Accounts ---------------------------------- #
@dataclass(frozen=True)
class AccountRef:
    """One upstream ad account under one platform."""

    platform: str
    account_id: str
    label: str = ""
    credential_ref: str = ""


@dataclass(frozen=True)
class OAuthClient:
    client_id: str
    client_secret: str
    refresh_token: str


@dataclass(frozen=True)
class AggregatorConfig:
    """Account and credential tables for every supported platform."""

    accounts: Mapping[str, tuple[AccountRef, ...]] = field(default_factory=dict)
    # credential_ref (or platform name for platform-wide tokens) -> token
    static_tokens: Mapping[str, str] = field(default_factory=dict)
    oauth_clients: Mapping[str, OAuthClient] = field(default_factory=dict)

    def accounts_for(self, platform: str) -> tuple[AccountRef, ...]:
        return tuple(self.accounts.get(platform, ()))

    def static_token(self, ref: str) -> str | None:
        return self.static_tokens.get(ref) or None

    def oauth_client(self, platform: str) -> OAuthClient | None:
        return self.oauth_clients.get(platform)


def _split_csv(raw: str | None) -> list[str]:
    return [s.strip() for s in (raw or "").split(",") if s.strip()]


def _load_json(raw: str, source: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {source}: {e}") from e


def _account_from_mapping(platform: str, item: Any, source: str) -> AccountRef:
    if isinstance(item, str):
        return AccountRef(platform=platform, account_id=item.strip())
    if not isinstance(item, dict):
        raise ConfigurationError(f"{source}: account entries must be strings or objects")
    account_id = str(item.get("account_id") or item.get("accountId") or "").strip()
    if not account_id:
        raise ConfigurationError(f"{source}: account entry without account_id")
    return AccountRef(
        platform=platform,
        account_id=account_id,
        label=str(item.get("label") or item.get("bm_name") or item.get("bmName") or ""),
        credential_ref=str(item.get("credential_ref") or item.get("credentialRef") or ""),
    )


def config_from_dict(data: Mapping[str, Any], source: str = "config") -> AggregatorConfig:
    """Build an ``AggregatorConfig`` from a plain mapping.

    Expected shape::

        {
          "accounts": {"snap": ["acc1", {"account_id": "acc2", "label": "EU"}], ...},
          "static_tokens": {"newsbreak": "...", "bm_main": "..."},
          "oauth_clients": {"snap": {"client_id": "...", "client_secret": "...", "refresh_token": "..."}}
        }
    """
    accounts_raw = data.get("accounts") or {}
    if not isinstance(accounts_raw, dict):
        raise ConfigurationError(f"{source}: 'accounts' must be an object keyed by platform")
    accounts: dict[str, tuple[AccountRef, ...]] = {}
    for platform, items in accounts_raw.items():
        if not isinstance(items, list):
            raise ConfigurationError(f"{source}: accounts for '{platform}' must be a list")
        accounts[platform] = tuple(_account_from_mapping(platform, it, source) for it in items)

    tokens_raw = data.get("static_tokens") or {}
    if not isinstance(tokens_raw, dict):
        raise ConfigurationError(f"{source}: 'static_tokens' must be an object")

    oauth: dict[str, OAuthClient] = {}
    for platform, client in (data.get("oauth_clients") or {}).items():
        if not isinstance(client, dict):
            raise ConfigurationError(f"{source}: oauth client for '{platform}' must be an object")
        oauth[platform] = OAuthClient(
            client_id=str(client.get("client_id") or ""),
            client_secret=str(client.get("client_secret") or ""),
            refresh_token=str(client.get("refresh_token") or ""),
        )

    return AggregatorConfig(
        accounts=accounts,
        static_tokens={str(k): str(v) for k, v in tokens_raw.items() if v},
        oauth_clients=oauth,
    )


def config_from_env(env: Mapping[str, str] | None = None) -> AggregatorConfig:
    """Build the config from the legacy per-platform environment variables."""
    env = os.environ if env is None else env
    data: dict[str, Any] = {"accounts": {}, "static_tokens": {}, "oauth_clients": {}}

    snap_accounts = _split_csv(env.get("SNAP_AD_ACCOUNTS"))
    if snap_accounts:
        data["accounts"]["snap"] = snap_accounts
    if env.get("SNAP_CLIENT_ID") or env.get("SNAP_REFRESH_TOKEN"):
        data["oauth_clients"]["snap"] = {
            "client_id": env.get("SNAP_CLIENT_ID", ""),
            "client_secret": env.get("SNAP_CLIENT_SECRET", ""),
            "refresh_token": env.get("SNAP_REFRESH_TOKEN", ""),
        }

    meta_raw = env.get("META_AD_ACCOUNTS", "").strip()
    if meta_raw:
        meta_accounts = _load_json(meta_raw, "META_AD_ACCOUNTS")
        if not isinstance(meta_accounts, list):
            raise ConfigurationError("META_AD_ACCOUNTS must be a JSON list")
        data["accounts"]["meta"] = meta_accounts
    meta_tokens_raw = env.get("META_ACCESS_TOKENS", "").strip()
    if meta_tokens_raw:
        meta_tokens = _load_json(meta_tokens_raw, "META_ACCESS_TOKENS")
        if not isinstance(meta_tokens, dict):
            raise ConfigurationError("META_ACCESS_TOKENS must be a JSON object")
        data["static_tokens"].update(meta_tokens)

    nb_accounts = _split_csv(env.get("NEWSBREAK_AD_ACCOUNTS"))
    if nb_accounts:
        data["accounts"]["newsbreak"] = nb_accounts
    if env.get("NEWSBREAK_ACCESS_TOKEN"):
        data["static_tokens"]["newsbreak"] = env["NEWSBREAK_ACCESS_TOKEN"]

    return config_from_dict(data, source="environment")


def load_aggregator_config(env: Mapping[str, str] | None = None) -> AggregatorConfig:
    """Load from ``ACCOUNTS_CONFIG_FILE`` when set, else from the environment."""
    env = os.environ if env is None else env
    path = env.get("ACCOUNTS_CONFIG_FILE", "").strip()
    if not path:
        return config_from_env(env)
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read accounts config file {path}: {e}") from e
    data = _load_json(raw, path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top-level value must be an object")
    return config_from_dict(data, source=path)


__all__ = [
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "LOG_LEVEL",
    "LOG_FILE",
    "RETRY_POLICY",
    "UPSTREAM_TIMEOUT_SECONDS",
    "MAX_PAGES_PER_ACCOUNT",
    "PAGE_SIZES",
    "MINOR_UNIT_FACTORS",
    "UPSTREAM_URLS",
    "META_GRAPH_VERSION",
    "CACHE_CONTROL",
    "CORS_ORIGINS",
    "CORS_ALLOW_METHODS",
    "CORS_ALLOW_HEADERS",
    # Accounts
    "AccountRef",
    "OAuthClient",
    "AggregatorConfig",
    "config_from_dict",
    "config_from_env",
    "load_aggregator_config",
]
