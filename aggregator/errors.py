"""Exception hierarchy for campaign aggregation.

Platform-level errors (credential, unsupported platform) propagate to the HTTP
layer; account-level errors (upstream fetch) are caught by the aggregator and
reported inline for the owning account only.
"""
from __future__ import annotations

from typing import Optional


class AggregatorError(Exception):
    """Base class for every error raised by the aggregator."""

    status_code: int = 500

    def __init__(self, message: str, platform: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.platform = platform


class ConfigurationError(AggregatorError):
    """Account/credential configuration could not be loaded."""


class UnsupportedPlatformError(AggregatorError):
    """Caller requested a platform with no adapter."""

    status_code = 400

    def __init__(self, platform: str, supported: list[str]):
        super().__init__(
            f"Unsupported platform: {platform}. Supported platforms: {', '.join(supported)}",
            platform=platform,
        )
        self.supported = supported


class CredentialError(AggregatorError):
    """No usable credential for a platform; the whole platform request aborts."""


class UpstreamFetchError(AggregatorError):
    """An upstream call failed (after retries where applicable)."""

    def __init__(self, message: str, platform: Optional[str] = None, account_id: Optional[str] = None):
        super().__init__(message, platform=platform)
        self.account_id = account_id


class UpstreamHTTPError(UpstreamFetchError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status: int, body: str, url: str):
        snippet = body[:300]
        super().__init__(f"Upstream request failed: {status} {snippet}".rstrip())
        self.status = status
        self.body = snippet
        self.url = url


__all__ = [
    "AggregatorError",
    "ConfigurationError",
    "UnsupportedPlatformError",
    "CredentialError",
    "UpstreamFetchError",
    "UpstreamHTTPError",
]
