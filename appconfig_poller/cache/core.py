"""
Core cache data structures.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheTier(Enum):
    """The two independently refreshed views of one configuration."""
    STRING = "string"   # raw payload as fetched
    OBJECT = "object"   # output of the configured parser


@dataclass
class CacheEntry(Generic[T]):
    """
    Latest value of one cache tier plus staleness metadata.

    latest_value is only ever replaced by a successful refresh. A failed
    refresh leaves it alone and records the failure in
    error_causing_stale_value instead, so readers keep getting the last
    good value.
    """
    latest_value: Optional[T] = None
    last_fresh_time: Optional[datetime] = None
    version_label: Optional[str] = None
    error_causing_stale_value: Optional[Exception] = None

    @property
    def has_value(self) -> bool:
        return self.latest_value is not None

    @property
    def is_stale(self) -> bool:
        """True while the most recent refresh of this tier failed."""
        return self.error_causing_stale_value is not None

    @property
    def age_seconds(self) -> Optional[float]:
        """Seconds since this tier was last confirmed up to date."""
        if self.last_fresh_time is None:
            return None
        return (utc_now() - self.last_fresh_time).total_seconds()

    def to_dict(self) -> dict:
        """Metadata for status output. The value itself is left out."""
        age = self.age_seconds
        return {
            "hasValue": self.has_value,
            "lastFreshTime": self.last_fresh_time.isoformat() if self.last_fresh_time else None,
            "versionLabel": self.version_label,
            "stale": self.is_stale,
            "error": str(self.error_causing_stale_value) if self.is_stale else None,
            "ageSeconds": round(age, 1) if age is not None else None,
        }

