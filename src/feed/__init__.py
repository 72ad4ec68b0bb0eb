"""
Download del feed JSON dei risultati.
Il decoding del contenuto è in parsers.feed.
"""
from .exceptions import RateLimitError, TransientFeedError  # noqa: F401
from .http_client import FeedHttpClient, get_http_client  # noqa: F401

__all__ = ["FeedHttpClient", "get_http_client", "RateLimitError", "TransientFeedError"]
