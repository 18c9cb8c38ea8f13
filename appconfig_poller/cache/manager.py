"""
Two-tier cache for a single configuration profile.
"""
import copy
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from ..errors import ParseError
from ..logsink import LogSink, emit
from .core import CacheEntry, CacheTier, utc_now

logger = logging.getLogger("appconfig_poller.cache")

T = TypeVar("T")

OBJECT_STALE_MESSAGE = "Config object has gone stale"
BOTH_STALE_MESSAGE = "Config string and object have gone stale"


class DualCache(Generic[T]):
    """
    Holds the raw configuration string and its parsed form side by side.

    - The string tier is overwritten on every fetch that returns a payload
    - The object tier is derived from the string tier by the parser and may
      lag behind it while the parser is failing; it is never ahead of it
    - Failures mark tiers stale but never clear their values

    All mutation goes through one lock, and readers get copies, so a reader
    on another thread never sees a half-written entry. The parser and the
    log sink are caller code and always run outside the lock.

    cache_new_value() and mark_stale() log their failures themselves.
    Owners that need to commit under a lock of their own use parse(),
    store() and record_failure(), which never log, and log afterwards.
    """

    def __init__(
        self,
        config_parser: Optional[Callable[[str], T]] = None,
        log: Optional[LogSink] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize an empty cache.

        Args:
            config_parser: Turns the raw string into the object tier. Without
                one the object tier is never populated.
            log: Sink called as log(message, error) for absorbed failures;
                defaults to the module logger
            clock: Source of freshness timestamps
        """
        self._parser = config_parser
        self._log_sink = log
        self._clock = clock
        self._lock = threading.RLock()

        self._string_entry: CacheEntry[str] = CacheEntry()
        self._object_entry: CacheEntry[T] = CacheEntry()

        self._stats = {
            "updates": 0,
            "unchanged": 0,
            "failures": 0,
            "parse_failures": 0,
        }

    @property
    def has_parser(self) -> bool:
        return self._parser is not None

    def _log(self, message: str, error: Optional[BaseException] = None) -> None:
        emit(self._log_sink, logger, message, error)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def parse(self, raw: str) -> Tuple[Optional[T], Optional[ParseError]]:
        """
        Run the parser on a payload without touching the cache.

        Returns:
            (parsed, None) on success, (None, ParseError) on failure, and
            (None, None) when there is no parser
        """
        if self._parser is None:
            return None, None
        try:
            return self._parser(raw), None
        except Exception as e:
            error = ParseError(f"Config parser failed: {e}")
            error.__cause__ = e
            return None, error

    def store(
        self,
        raw: str,
        version_label: Optional[str] = None,
        parsed: Optional[T] = None,
        parse_error: Optional[ParseError] = None,
    ) -> None:
        """
        Commit a payload and its parse() result to both tiers at once.

        The string tier is always overwritten. The object tier takes the
        parsed value unless parse_error is set, in which case it keeps its
        previous value and records the error.
        """
        with self._lock:
            now = self._clock()
            s = self._string_entry
            s.latest_value = raw
            s.last_fresh_time = now
            s.version_label = version_label
            s.error_causing_stale_value = None
            self._stats["updates"] += 1

            if self._parser is None:
                return
            if parse_error is not None:
                self._object_entry.error_causing_stale_value = parse_error
                self._stats["parse_failures"] += 1
                return

            o = self._object_entry
            o.latest_value = parsed
            o.last_fresh_time = now
            o.version_label = version_label
            o.error_causing_stale_value = None

    def cache_new_value(self, raw: str, version_label: Optional[str] = None) -> Optional[ParseError]:
        """
        Store a freshly fetched payload.

        Returns:
            The ParseError recorded on the object tier, if parsing failed
        """
        parsed, error = self.parse(raw)
        self.store(raw, version_label, parsed, error)
        if error is not None:
            self._log(OBJECT_STALE_MESSAGE, error)
        return error

    def mark_unchanged(self) -> None:
        """The service reported no change: both tiers are confirmed current."""
        with self._lock:
            now = self._clock()
            self._string_entry.last_fresh_time = now
            self._object_entry.last_fresh_time = now
            self._stats["unchanged"] += 1

    def record_failure(self, error: Exception) -> None:
        """Set error on both tiers, keeping their values."""
        with self._lock:
            self._string_entry.error_causing_stale_value = error
            self._object_entry.error_causing_stale_value = error
            self._stats["failures"] += 1

    def mark_stale(self, error: Exception) -> None:
        """Record a failed refresh on both tiers and log it."""
        self.record_failure(error)
        self._log(BOTH_STALE_MESSAGE, error)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self, tier: CacheTier) -> CacheEntry[Any]:
        """Copy of one tier, safe to hand to readers."""
        with self._lock:
            if tier is CacheTier.STRING:
                return copy.copy(self._string_entry)
            return copy.copy(self._object_entry)

    def string_snapshot(self) -> CacheEntry[str]:
        return self.snapshot(CacheTier.STRING)

    def object_snapshot(self) -> CacheEntry[T]:
        return self.snapshot(CacheTier.OBJECT)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                **self._stats,
                "string_stale": self._string_entry.is_stale,
                "object_stale": self._object_entry.is_stale,
                "version_label": self._string_entry.version_label,
            }
