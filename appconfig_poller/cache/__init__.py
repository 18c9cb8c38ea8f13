"""
Two-tier configuration cache with independent staleness tracking.
"""
from .core import CacheEntry, CacheTier, utc_now
from .manager import DualCache

__all__ = [
    # Core types
    "CacheEntry",
    "CacheTier",
    "utc_now",
    # Manager
    "DualCache",
]
