"""
Platform registry.
Maps platform identifiers (and their aliases) to adapter instances.
"""
from typing import Dict, List, Optional

from aggregator.errors import UnsupportedPlatformError
from aggregator.integrations.base import PlatformAdapter
from aggregator.integrations.http import HTTPClient
from aggregator.integrations.meta import MetaIntegration
from aggregator.integrations.newsbreak import NewsBreakIntegration
from aggregator.integrations.snap import SnapIntegration
from aggregator.utils import get_logger

ADAPTER_CLASSES = (MetaIntegration, NewsBreakIntegration, SnapIntegration)


class PlatformRegistry:
    """Adapters for every supported platform, sharing one HTTP client."""

    def __init__(self, http: HTTPClient, adapters: Optional[List[PlatformAdapter]] = None):
        self.adapters: Dict[str, PlatformAdapter] = {}
        self._aliases: Dict[str, str] = {}
        self.logger = get_logger("platform_registry")
        for adapter in adapters if adapters is not None else [cls(http) for cls in ADAPTER_CLASSES]:
            self.register(adapter)

    def register(self, adapter: PlatformAdapter) -> None:
        name = adapter.platform_name.lower()
        self.adapters[name] = adapter
        self._aliases[name] = name
        for alias in adapter.aliases:
            self._aliases[alias.lower()] = name

    def supported(self) -> List[str]:
        return sorted(self.adapters)

    def canonical_name(self, platform: Optional[str]) -> Optional[str]:
        if not platform:
            return None
        return self._aliases.get(platform.strip().lower())

    def resolve(self, platform: Optional[str]) -> PlatformAdapter:
        name = self.canonical_name(platform)
        if name is None:
            self.logger.warning(
                "Unsupported platform",
                platform_name=platform,
                supported_platforms=self.supported(),
            )
            raise UnsupportedPlatformError(str(platform or ""), self.supported())
        return self.adapters[name]
