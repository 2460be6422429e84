"""
Tests for the cache store implementations and open_store scoping.

The Redis store is exercised against a MagicMock client so no server is
needed.
"""

from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from cache_guardian.config import Settings
from cache_guardian.exceptions import StoreError, StoreUnavailable
from cache_guardian.models.config import GuardianConfig
from cache_guardian.services.guardian import assess_and_evict
from cache_guardian.stores import InMemoryCacheStore, RedisCacheStore, create_store, open_store


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.info.return_value = {"used_memory": 850, "maxmemory": 1000, "used_memory_human": "850B"}
    return client


@pytest.fixture
def redis_store(redis_client):
    return RedisCacheStore(url="redis://example:6379/0", client=redis_client)


class TestInMemoryCacheStore:

    def test_scan_pages_by_cursor(self):
        store = InMemoryCacheStore(data={f"cache:{i}": "v" for i in range(5)})

        cursor, keys = store.scan_keys("0", "cache:*", 2)
        assert (cursor, keys) == ("2", ["cache:0", "cache:1"])
        cursor, keys = store.scan_keys(cursor, "cache:*", 2)
        assert (cursor, keys) == ("4", ["cache:2", "cache:3"])
        cursor, keys = store.scan_keys(cursor, "cache:*", 2)
        assert (cursor, keys) == ("0", ["cache:4"])

    def test_scan_filters_by_pattern(self):
        store = InMemoryCacheStore(data={"cache:a": "1", "session:a": "2", "cache:b": "3"})

        cursor, keys = store.scan_keys("0", "cache:*", 10)

        assert cursor == "0"
        assert keys == ["cache:a", "cache:b"]

    def test_deletes_between_scans_do_not_skip_keys(self):
        store = InMemoryCacheStore(data={f"cache:{i}": "v" for i in range(6)})

        seen = []
        cursor = "0"
        while True:
            cursor, keys = store.scan_keys(cursor, "cache:*", 2)
            seen.extend(keys)
            store.delete_keys(keys)
            if cursor == "0":
                break

        assert len(seen) == 6
        assert store.keys() == []

    def test_delete_missing_keys_is_not_an_error(self):
        store = InMemoryCacheStore(data={"cache:a": "1"})

        assert store.delete_keys(["cache:a", "cache:missing"]) == 1
        assert store.delete_keys(["cache:a"]) == 0
        assert store.delete_keys([]) == 0

    def test_memory_info(self):
        report = InMemoryCacheStore(used_bytes=10, max_bytes=20).get_memory_info()
        assert (report.used_bytes, report.max_bytes) == (10, 20)


class TestRedisCacheStore:

    def test_memory_info_parsed(self, redis_store, redis_client):
        report = redis_store.get_memory_info()

        redis_client.info.assert_called_once_with("memory")
        assert report.used_bytes == 850
        assert report.max_bytes == 1000

    def test_memory_info_missing_maxmemory_reads_as_no_ceiling(self, redis_store, redis_client):
        redis_client.info.return_value = {"used_memory": 123}

        report = redis_store.get_memory_info()

        assert report.max_bytes == 0
        assert report.has_ceiling is False

    def test_memory_info_unparseable_field(self, redis_store, redis_client):
        redis_client.info.return_value = {"used_memory": "lots", "maxmemory": "1000"}

        report = redis_store.get_memory_info()

        assert report.used_bytes == 0
        assert report.max_bytes == 1000

    def test_scan_normalises_cursor_and_keys(self, redis_store, redis_client):
        redis_client.scan.return_value = (17, [b"cache:a", "cache:b"])

        cursor, keys = redis_store.scan_keys("0", "cache:*", 100)

        redis_client.scan.assert_called_once_with(cursor=0, match=b"cache:*", count=100)
        assert cursor == "17"
        assert keys == ["cache:a", "cache:b"]

    def test_scan_complete_cursor(self, redis_store, redis_client):
        redis_client.scan.return_value = (0, [])

        cursor, keys = redis_store.scan_keys("17", "cache:*", 100)

        assert cursor == "0"
        assert keys == []

    def test_delete_issues_single_del(self, redis_store, redis_client):
        redis_client.delete.return_value = 3

        removed = redis_store.delete_keys(["cache:a", "cache:b", "cache:c"])

        redis_client.delete.assert_called_once_with(b"cache:a", b"cache:b", b"cache:c")
        assert removed == 3

    def test_delete_nothing_skips_call(self, redis_store, redis_client):
        assert redis_store.delete_keys([]) == 0
        redis_client.delete.assert_not_called()

    @pytest.mark.parametrize("error", [RedisConnectionError("refused"), RedisTimeoutError("timed out")])
    def test_redis_errors_become_store_errors(self, redis_store, redis_client, error):
        redis_client.info.side_effect = error
        redis_client.scan.side_effect = error
        redis_client.delete.side_effect = error

        with pytest.raises(StoreError):
            redis_store.get_memory_info()
        with pytest.raises(StoreError):
            redis_store.scan_keys("0", "cache:*", 10)
        with pytest.raises(StoreError):
            redis_store.delete_keys(["cache:a"])

    def test_not_connected(self):
        store = RedisCacheStore(url="redis://example:6379/0")

        with pytest.raises(StoreError):
            store.get_memory_info()

    def test_connect_builds_client_with_timeouts(self):
        store = RedisCacheStore(url="redis://example:6379/0", socket_timeout=2.5)

        with patch("redis.Redis.from_url") as from_url:
            store.connect()

        from_url.assert_called_once_with(
            "redis://example:6379/0",
            socket_timeout=2.5,
            socket_connect_timeout=2.5,
            decode_responses=False,
        )
        from_url.return_value.ping.assert_called_once()

    def test_connect_failure(self, redis_store, redis_client):
        redis_client.ping.side_effect = RedisConnectionError("refused")

        with pytest.raises(StoreError):
            redis_store.connect()

    def test_connect_failure_releases_client(self, redis_store, redis_client):
        """A failed ping closes the half-open client instead of leaking it"""
        redis_client.ping.side_effect = RedisTimeoutError("timed out")
        redis_client.close.side_effect = OSError("socket already gone")

        with pytest.raises(StoreError, match="Cannot reach Redis"):
            redis_store.connect()

        redis_client.close.assert_called_once()
        with pytest.raises(StoreError, match="not connected"):
            redis_store.get_memory_info()

    @pytest.mark.parametrize("url", ["not-a-url", "http://example:6379/0"])
    def test_malformed_url_becomes_store_error(self, url):
        store = RedisCacheStore(url=url)

        with pytest.raises(StoreError, match="Invalid Redis URL"):
            store.connect()

    def test_disconnect_closes_client(self, redis_store, redis_client):
        redis_store.disconnect()

        redis_client.close.assert_called_once()
        with pytest.raises(StoreError):
            redis_store.get_memory_info()

        # Second disconnect is a no-op
        redis_store.disconnect()
        redis_client.close.assert_called_once()

    def test_non_utf8_key_survives_scan_and_delete(self, redis_store, redis_client):
        redis_client.scan.return_value = (0, [b"cache:\xff\xfe"])
        redis_client.delete.return_value = 1

        _, keys = redis_store.scan_keys("0", "cache:*", 100)
        removed = redis_store.delete_keys(keys)

        redis_client.delete.assert_called_once_with(b"cache:\xff\xfe")
        assert removed == 1

    @pytest.mark.parametrize("error", [
        UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
        OSError("connection reset"),
    ])
    def test_non_redis_client_errors_become_store_errors(self, redis_store, redis_client, error):
        redis_client.info.side_effect = error
        redis_client.scan.side_effect = error
        redis_client.delete.side_effect = error

        with pytest.raises(StoreError):
            redis_store.get_memory_info()
        with pytest.raises(StoreError):
            redis_store.scan_keys("0", "cache:*", 10)
        with pytest.raises(StoreError):
            redis_store.delete_keys(["cache:a"])


class TestRedisStoreWithGuardian:
    """The guardian driving RedisCacheStore over a mocked client (850/1000 bytes used)"""

    def test_evicts_non_utf8_keys(self, redis_store, redis_client):
        redis_client.scan.return_value = (0, [b"cache:\xff\xfe", b"cache:ok"])
        redis_client.delete.return_value = 2

        outcome = assess_and_evict(redis_store, GuardianConfig())

        redis_client.delete.assert_called_once_with(b"cache:\xff\xfe", b"cache:ok")
        assert outcome.keys_deleted == 2
        assert outcome.scanned_batches == 1

    @pytest.mark.parametrize("error", [
        UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
        OSError("connection reset"),
    ])
    def test_client_failure_aborts_with_store_unavailable(self, redis_store, redis_client, error):
        redis_client.scan.side_effect = error

        with pytest.raises(StoreUnavailable) as excinfo:
            assess_and_evict(redis_store, GuardianConfig())

        assert excinfo.value.outcome.triggered is True
        assert excinfo.value.outcome.scanned_batches == 0
        redis_client.delete.assert_not_called()

    @pytest.mark.parametrize("pattern", ["cache:[^s]*", r"cache\:*", "cache:[a-z]?", "cache:x[0-9]"])
    def test_redis_glob_patterns_keep_matching_keys(self, redis_store, redis_client, pattern):
        redis_client.scan.return_value = (0, [b"cache:x1"])
        redis_client.delete.return_value = 1

        outcome = assess_and_evict(redis_store, GuardianConfig(key_pattern=pattern))

        redis_client.delete.assert_called_once_with(b"cache:x1")
        assert outcome.keys_deleted == 1

    def test_negated_class_still_guards_namespace(self, redis_store, redis_client):
        redis_client.scan.return_value = (0, [b"cache:s1", b"cache:x1"])
        redis_client.delete.return_value = 1

        assess_and_evict(redis_store, GuardianConfig(key_pattern="cache:[^s]*"))

        redis_client.delete.assert_called_once_with(b"cache:x1")


class TestOpenStore:

    def test_connects_and_disconnects(self):
        store = InMemoryCacheStore()

        with open_store(store) as opened:
            assert opened is store
            assert store.connected is True

        assert store.connected is False

    def test_disconnects_on_error(self):
        store = InMemoryCacheStore()

        with pytest.raises(RuntimeError):
            with open_store(store):
                raise RuntimeError("sweep blew up")

        assert store.connected is False

    def test_create_store_from_settings(self):
        settings = Settings().model_copy(update={"redis_url": "redis://cache.internal:6380/2", "socket_timeout": 1.5})

        store = create_store(settings)

        assert isinstance(store, RedisCacheStore)
        assert store.url == "redis://cache.internal:6380/2"
        assert store.socket_timeout == 1.5
