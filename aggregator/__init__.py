"""Campaign aggregator package.

Lists advertising campaigns across the ad accounts of one upstream platform
(Meta, Snapchat, NewsBreak) per request and serves them over FastAPI.
"""

__all__: list[str] = []
