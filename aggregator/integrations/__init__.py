"""
Integrations package initialization.
Exports the platform adapters and their registry.
"""
from .base import PlatformAdapter
from .http import HTTPClient, UpstreamClient
from .meta import MetaIntegration
from .newsbreak import NewsBreakIntegration
from .snap import SnapIntegration
from .platforms import PlatformRegistry

__all__ = [
    "PlatformAdapter",
    "HTTPClient",
    "UpstreamClient",
    "MetaIntegration",
    "NewsBreakIntegration",
    "SnapIntegration",
    "PlatformRegistry",
]
