"""Tests for the tier facades and serializers.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import threading
import time

import pytest

from cacheit_core.cache.config import CacheTier
from cacheit_core.cache.controller import CacheController
from cacheit_core.cache.facade import PersistentCache, TransientCache
from cacheit_core.protocol.serializer import (
    JSONSerializer,
    MsgPackSerializer,
    PickleSerializer,
    SerializerRegistry,
    get_serializer,
)


@pytest.fixture
def controller(tmp_path):
    with CacheController(tmp_path / "cache", min_timer_seconds=0.05) as c:
        yield c


class TestTransientCache:
    """Tests for TransientCache."""

    def test_subscript(self, controller):
        """Test set, get and delete by subscript."""
        cache = TransientCache(controller, expiration=60)

        cache["session"] = {"user": 1, "roles": ["admin"]}

        assert cache["session"] == {"user": 1, "roles": ["admin"]}
        assert "session" in cache

        del cache["session"]
        assert "session" not in cache

    def test_missing_key(self, controller):
        """Test missing keys raise from subscript and default from get."""
        cache = TransientCache(controller)

        with pytest.raises(KeyError):
            cache["missing"]
        with pytest.raises(KeyError):
            del cache["missing"]
        assert cache.get("missing", "fallback") == "fallback"

    def test_assign_none_removes(self, controller):
        """Test assigning None removes the key."""
        cache = TransientCache(controller, expiration=60)
        cache["key"] = 42

        cache["key"] = None

        assert cache.get("key") is None
        assert controller.fetch(CacheTier.TRANSIENT, "key") is None

    def test_expiration(self, controller):
        """Test the view's TTL applies to values it sets."""
        cache = TransientCache(controller, expiration=0.1)
        cache["key"] = "value"

        time.sleep(0.3)

        assert cache.get("key") is None

    def test_ttl_override(self, controller):
        """Test a per-call TTL beats the view's TTL."""
        cache = TransientCache(controller, expiration=0.1)
        cache.set("key", "value", ttl=60)

        time.sleep(0.3)

        assert cache["key"] == "value"

    def test_unencodable_value(self, controller):
        """Test values the serializer rejects are not stored."""
        cache = TransientCache(controller, serializer=JSONSerializer())

        assert not cache.set("key", object())
        assert "key" not in cache

    def test_undecodable_payload(self, controller):
        """Test payloads the serializer cannot read come back as default."""
        controller.create(CacheTier.TRANSIENT, "key", b"\xff\xfe not json", ttl=60)
        cache = TransientCache(controller, serializer=JSONSerializer())

        assert cache.get("key", "default") == "default"

    def test_remove_all(self, controller):
        """Test remove_all_cache clears the tier."""
        cache = TransientCache(controller, expiration=60)
        cache["a"] = 1
        cache["b"] = 2

        assert cache.remove_all_cache() == 2
        assert "a" not in cache

    def test_serializers(self, controller):
        """Test each built-in serializer through the view."""
        for serializer in (JSONSerializer(), PickleSerializer(), MsgPackSerializer()):
            cache = TransientCache(controller, expiration=60, serializer=serializer)
            cache["key"] = {"name": "ada", "tags": [1, 2, 3]}
            assert cache["key"] == {"name": "ada", "tags": [1, 2, 3]}


class TestPersistentCache:
    """Tests for PersistentCache."""

    def test_subscript(self, controller):
        """Test values round-trip through disk."""
        cache = PersistentCache(controller, expiration=60)

        cache["people"] = ["ada", "grace"]

        assert cache["people"] == ["ada", "grace"]
        entry = controller.fetch(CacheTier.PERSISTENT, "people")
        assert entry.path.exists()
        cache.close()

    def test_survives_new_controller(self, tmp_path):
        """Test values set through one controller are read by the next."""
        with CacheController(tmp_path / "cache") as first:
            PersistentCache(first, expiration=60)["key"] = {"a": 1}

        with CacheController(tmp_path / "cache") as second:
            assert PersistentCache(second)["key"] == {"a": 1}

    def test_set_value_async(self, controller):
        """Test async store calls back and resolves its future."""
        done = threading.Event()

        with PersistentCache(controller, expiration=60) as cache:
            future = cache.set_value_async(["x", "y"], "key", done.set)

            assert future.result(timeout=2.0)
            assert done.is_set()
            assert cache["key"] == ["x", "y"]

    def test_value_async(self, controller):
        """Test async read passes the value to the completion."""
        received = []

        with PersistentCache(controller, expiration=60) as cache:
            cache["key"] = 7
            future = cache.value_async("key", received.append)

            assert future.result(timeout=2.0) == 7
            assert received == [7]

    def test_value_async_missing(self, controller):
        """Test async read of a missing key yields None."""
        with PersistentCache(controller) as cache:
            assert cache.value_async("missing").result(timeout=2.0) is None

    def test_set_value_async_none_removes(self, controller):
        """Test async None assignment removes the key."""
        with PersistentCache(controller, expiration=60) as cache:
            cache["key"] = 1
            assert cache.set_value_async(None, "key").result(timeout=2.0)
            assert "key" not in cache


class TestSerializerRegistry:
    """Tests for SerializerRegistry."""

    def test_default_is_pickle(self):
        """Test the package default serializer."""
        assert get_serializer().format_name == "pickle"

    def test_lookup(self):
        """Test lookup by format name."""
        registry = SerializerRegistry()

        assert set(registry.list_formats()) == {"json", "pickle", "msgpack"}
        assert isinstance(registry.get("json"), JSONSerializer)

    def test_unknown_format(self):
        """Test unknown formats raise."""
        registry = SerializerRegistry()

        with pytest.raises(KeyError):
            registry.get("yaml")
        with pytest.raises(KeyError):
            registry.set_default("yaml")

    def test_set_default(self):
        """Test changing the default format."""
        registry = SerializerRegistry()
        registry.set_default("msgpack")

        assert registry.get().format_name == "msgpack"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
