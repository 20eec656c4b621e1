"""Tests for the transient cache manager and entries.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import threading
import time

import pytest

from cacheit_core.cache.config import (
    CacheTier,
    PersistentDefaults,
    PersistentUnitConfig,
    TransientDefaults,
    TransientUnitConfig,
)
from cacheit_core.cache.entry import EntryState, TransientEntry
from cacheit_core.store.memory import TransientCacheManager


@pytest.fixture
def manager():
    with TransientCacheManager() as m:
        yield m


class TestTransientCacheManager:
    """Tests for TransientCacheManager."""

    def test_round_trip(self, manager):
        """Test create then fetch returns the same payload and metadata."""
        manager.create("key", b"\x00value\xff", ttl=60, metadata={"MimeType": "JSON"})

        entry = manager.fetch("key")
        assert isinstance(entry, TransientEntry)
        assert entry.tier == CacheTier.TRANSIENT
        assert entry.data == b"\x00value\xff"
        assert entry.metadata == {"MimeType": "JSON"}
        assert entry.state == EntryState.LIVE

    def test_fetch_missing(self, manager):
        """Test fetching an unknown key."""
        assert manager.fetch("missing") is None

    def test_default_ttl(self, manager):
        """Test the tier default applies when no TTL is given."""
        entry = manager.create("key", b"v")
        assert 29.0 < entry.remaining_ttl <= 30.0

    def test_overwrite_expires_prior(self, manager):
        """Test a same-key create replaces and expires the prior entry."""
        first = manager.create("key", b"one", ttl=60)
        second = manager.create("key", b"two", ttl=60)

        assert first.state == EntryState.EXPIRED
        assert second.state == EntryState.LIVE
        assert manager.fetch("key") is second
        assert manager.size() == 1

    def test_ttl_expiration(self, manager):
        """Test entries disappear after their TTL."""
        entry = manager.create("key", b"v", ttl=0.1)
        assert manager.fetch("key") is entry

        time.sleep(0.3)
        assert manager.fetch("key") is None
        assert "key" not in manager.keys()
        assert entry.state == EntryState.EXPIRED

    def test_expiration_fixed_at_creation(self, manager):
        """Test default changes do not touch live entries."""
        entry = manager.create("key", b"v")
        expiration = entry.expiration

        manager.set_default(TransientDefaults(ttl_seconds=0.05))
        time.sleep(0.2)

        assert manager.fetch("key") is entry
        assert entry.expiration == expiration
        assert manager.create("short", b"v").remaining_ttl <= 0.05

    def test_remove_idempotent(self, manager):
        """Test removing twice is the same as removing once."""
        manager.create("key", b"v", ttl=60)

        assert manager.remove("key")
        assert not manager.remove("key")
        assert manager.fetch("key") is None

    def test_entry_expire_idempotent(self, manager):
        """Test expiring an entry repeatedly is a no-op after the first."""
        entry = manager.create("key", b"v", ttl=60)

        entry.expire()
        entry.expire()

        assert manager.fetch("key") is None
        assert manager.get_stats().removals + manager.get_stats().expirations == 1

    def test_stale_expire_keeps_replacement(self, manager):
        """Test expiring an overwritten entry leaves the new one alone."""
        first = manager.create("key", b"one", ttl=60)
        second = manager.create("key", b"two", ttl=60)

        first.expire()

        assert manager.fetch("key") is second

    def test_purge(self, manager):
        """Test purge removes every entry."""
        for i in range(5):
            manager.create(f"key{i}", b"v", ttl=60)

        assert manager.purge() == 5
        assert manager.size() == 0

    def test_memory_usage(self, manager):
        """Test payload size accounting."""
        manager.create("a", b"12345", ttl=60)
        manager.create("b", b"123", ttl=60)
        assert manager.memory_usage() == 8

    def test_create_cache_unit(self, manager):
        """Test create from a creation request."""
        entry = manager.create_cache_unit(TransientUnitConfig("key", b"v", expiration=60))
        assert manager.fetch("key") is entry

    def test_rejects_persistent_config(self, manager):
        """Test a persistent request is dropped without raising."""
        assert manager.create_cache_unit(PersistentUnitConfig("key", b"v")) is None
        assert manager.fetch("key") is None
        assert manager.get_stats().rejected == 1

    def test_rejects_non_bytes_payload(self, manager):
        """Test malformed payloads are dropped."""
        assert manager.create("key", "not bytes") is None
        assert manager.create("key", b"v", ttl="soon") is None
        assert manager.fetch("key") is None

    def test_rejects_non_json_metadata(self, manager):
        """Test metadata that cannot be written as JSON is dropped."""
        assert manager.create("key", b"v", ttl=60, metadata={"x": object()}) is None
        assert manager.create("key", b"v", ttl=60, metadata={"tags": {1, 2}}) is None
        assert manager.fetch("key") is None
        assert manager.get_stats().rejected == 2

    @pytest.mark.parametrize("ttl", [1e12, float("inf"), float("-inf"), float("nan")])
    def test_rejects_out_of_range_ttl(self, manager, ttl):
        """Test TTLs that cannot become an expiration instant are dropped."""
        assert manager.create("key", b"v", ttl=ttl) is None
        assert manager.fetch("key") is None
        assert manager.get_stats().rejected == 1

    def test_rejects_persistent_defaults(self, manager):
        """Test wrong-tier defaults are ignored."""
        assert not manager.set_default(PersistentDefaults(ttl_seconds=1))
        assert manager.defaults == TransientDefaults()

    def test_thread_safety(self, manager):
        """Test concurrent create/fetch/remove."""
        errors = []

        def worker(n):
            try:
                for i in range(100):
                    key = f"key-{n}-{i % 10}"
                    manager.create(key, str(i).encode(), ttl=60)
                    manager.fetch(key)
                    manager.remove(key)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert manager.size() == 0

    def test_concurrent_same_key(self, manager):
        """Test racing creates for one key leave exactly one live entry."""
        entries = []
        lock = threading.Lock()

        def worker(n):
            entry = manager.create("shared", str(n).encode(), ttl=60)
            with lock:
                entries.append(entry)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        live = [e for e in entries if e.state == EntryState.LIVE]
        assert len(live) == 1
        assert manager.fetch("shared") is live[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
