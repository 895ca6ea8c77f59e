"""HypeMeter caching: TTL policy and the in-memory cache."""

from .ttl_cache import TTLCache
from .ttl_config import TTL, key_mentions, key_quote

__all__ = ["TTLCache", "TTL", "key_mentions", "key_quote"]
