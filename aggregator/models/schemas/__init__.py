from .base import ErrorResponse
from .campaigns import Campaign, AccountResult, PlatformResult, PlatformInfo

__all__ = [
    "ErrorResponse",
    "Campaign",
    "AccountResult",
    "PlatformResult",
    "PlatformInfo",
]
