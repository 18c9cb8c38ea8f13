"""
Tests for the two-tier configuration cache.
"""
import threading

import pytest

from appconfig_poller.cache import CacheEntry, CacheTier, DualCache
from appconfig_poller.errors import FetchError, ParseError


@pytest.fixture
def cache(clock):
    return DualCache(config_parser=int, clock=clock)


# =============================================================================
# Write path
# =============================================================================

def test_new_value_updates_both_tiers(cache):
    """A parsable payload lands in both tiers with the same label and time"""
    cache.cache_new_value("42", version_label="v1")

    s = cache.string_snapshot()
    o = cache.object_snapshot()
    assert s.latest_value == "42"
    assert o.latest_value == 42
    assert s.version_label == o.version_label == "v1"
    assert s.last_fresh_time == o.last_fresh_time
    assert not s.is_stale and not o.is_stale


def test_parse_failure_scoped_to_object_tier(cache):
    """Parser errors never touch the string tier"""
    cache.cache_new_value("1", version_label="v1")

    error = cache.cache_new_value("not a number", version_label="v2")

    assert isinstance(error, ParseError)
    assert isinstance(error.__cause__, ValueError)
    s = cache.string_snapshot()
    o = cache.object_snapshot()
    assert s.latest_value == "not a number"
    assert s.version_label == "v2"
    assert s.error_causing_stale_value is None
    assert o.latest_value == 1
    assert o.version_label == "v1"
    assert o.error_causing_stale_value is error


def test_no_parser_leaves_object_tier_empty(clock):
    """Without a parser only the string tier is written"""
    cache = DualCache(clock=clock)
    assert cache.cache_new_value("raw") is None
    assert cache.object_snapshot().latest_value is None
    assert not cache.has_parser


def test_mark_stale_keeps_values(cache):
    """Failures set the error but never clear values"""
    cache.cache_new_value("7")
    error = FetchError("down")

    cache.mark_stale(error)

    assert cache.string_snapshot().latest_value == "7"
    assert cache.object_snapshot().latest_value == 7
    assert cache.string_snapshot().error_causing_stale_value is error
    assert cache.object_snapshot().error_causing_stale_value is error


def test_mark_unchanged_only_touches_timestamps(cache):
    """'Unchanged' advances freshness and nothing else"""
    cache.cache_new_value("7", version_label="v1")
    cache.mark_stale(FetchError("down"))
    before = cache.string_snapshot()

    cache.mark_unchanged()

    after = cache.string_snapshot()
    assert after.last_fresh_time > before.last_fresh_time
    assert after.latest_value == "7"
    assert after.version_label == "v1"
    assert after.error_causing_stale_value is before.error_causing_stale_value


def test_log_sink_called_for_failures(clock):
    """Absorbed failures go to the sink with a short message"""
    messages = []
    cache = DualCache(config_parser=int, log=lambda m, e=None: messages.append(m), clock=clock)

    cache.cache_new_value("x")
    cache.mark_stale(FetchError("down"))

    assert messages == [
        "Config object has gone stale",
        "Config string and object have gone stale",
    ]


def test_parse_leaves_cache_untouched(cache):
    """parse() only runs the parser"""
    parsed, error = cache.parse("12")
    assert parsed == 12
    assert error is None
    assert cache.string_snapshot().latest_value is None

    parsed, error = cache.parse("x")
    assert parsed is None
    assert isinstance(error, ParseError)
    assert cache.get_stats()["parse_failures"] == 0


def test_parser_runs_outside_lock(clock):
    """The parser runs while the cache stays readable from other threads"""
    reads = []

    def parser(s):
        reader = threading.Thread(target=lambda: reads.append(cache.string_snapshot()))
        reader.start()
        reader.join(timeout=2)
        return s

    cache = DualCache(config_parser=parser, clock=clock)
    cache.cache_new_value("v1")

    assert len(reads) == 1
    assert reads[0].latest_value is None


def test_store_with_parse_error(cache):
    """store() keeps the old object when given a parse error"""
    cache.cache_new_value("3", version_label="v1")
    _, error = cache.parse("x")

    cache.store("x", "v2", parse_error=error)

    assert cache.string_snapshot().latest_value == "x"
    assert cache.object_snapshot().latest_value == 3
    assert cache.object_snapshot().error_causing_stale_value is error
    assert cache.get_stats()["parse_failures"] == 1


def test_quiet_writes_do_not_log(clock):
    """store() and record_failure() leave logging to the caller"""
    messages = []
    cache = DualCache(config_parser=int, log=lambda m, e=None: messages.append(m), clock=clock)
    _, error = cache.parse("x")

    cache.store("x", parse_error=error)
    cache.record_failure(FetchError("down"))

    assert messages == []
    assert cache.string_snapshot().error_causing_stale_value is not None


# =============================================================================
# Reads
# =============================================================================

def test_snapshots_are_copies(cache):
    """Mutating a snapshot does not change the cache"""
    cache.cache_new_value("5")
    snap = cache.snapshot(CacheTier.STRING)
    snap.latest_value = "tampered"

    assert cache.string_snapshot().latest_value == "5"


def test_snapshot_not_affected_by_later_writes(cache):
    """A snapshot keeps the value it was taken with"""
    cache.cache_new_value("5")
    snap = cache.object_snapshot()
    cache.cache_new_value("6")

    assert snap.latest_value == 5


def test_stats(cache):
    """Counters track every kind of refresh"""
    cache.cache_new_value("1")
    cache.cache_new_value("x")
    cache.mark_unchanged()
    cache.mark_stale(FetchError("down"))

    stats = cache.get_stats()
    assert stats["updates"] == 2
    assert stats["parse_failures"] == 1
    assert stats["unchanged"] == 1
    assert stats["failures"] == 1
    assert stats["string_stale"] is True


# =============================================================================
# CacheEntry
# =============================================================================

def test_empty_entry():
    """A new entry has no value, no age and no error"""
    entry = CacheEntry()
    assert not entry.has_value
    assert not entry.is_stale
    assert entry.age_seconds is None


def test_entry_to_dict_omits_value(cache):
    """Status output carries metadata only"""
    cache.cache_new_value("secret", version_label="v3")
    cache.mark_stale(FetchError("down"))

    data = cache.string_snapshot().to_dict()
    assert "secret" not in str(data)
    assert data["versionLabel"] == "v3"
    assert data["stale"] is True
    assert data["error"] == "down"
    assert data["hasValue"] is True
