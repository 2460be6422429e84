"""Redis-backed cache store using redis-py"""
import logging
from typing import List, Optional, Sequence, Tuple

import redis
from redis.exceptions import RedisError

from ..exceptions import StoreError
from ..interfaces.store import ICacheStore
from ..models.memory import MemoryReport

logger = logging.getLogger(__name__)

# Failures a client call can raise that are not the guardian's bug
CLIENT_ERRORS = (RedisError, OSError, UnicodeError)

# Keys are arbitrary bytes; surrogateescape makes bytes -> str -> bytes lossless
KEY_ENCODING = "utf-8"
KEY_ERRORS = "surrogateescape"


def decode_key(key) -> str:
    if isinstance(key, bytes):
        return key.decode(KEY_ENCODING, KEY_ERRORS)
    return key


def encode_key(key: str) -> bytes:
    return key.encode(KEY_ENCODING, KEY_ERRORS)


class RedisCacheStore(ICacheStore):
    """
    ICacheStore over a Redis (or Redis-compatible, e.g. Upstash) server.

    Every command carries the socket timeout given at construction, so no
    call blocks indefinitely. Client failures surface as StoreError.

    The client runs with decode_responses=False: keys come back as bytes and
    are handed to the guardian as surrogate-escaped str, then encoded back
    the same way for DEL, so keys that are not valid UTF-8 are still evicted.
    """

    def __init__(self, url: str, socket_timeout: Optional[float] = 5.0, client: Optional[redis.Redis] = None):
        """
        Args:
            url: Connection URL, e.g. redis://localhost:6379/0
            socket_timeout: Seconds allowed for connect and for each command
            client: Pre-built client (used instead of connecting to url)
        """
        self.url = url
        self.socket_timeout = socket_timeout
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise StoreError("Redis store is not connected")
        return self._client

    def connect(self) -> None:
        """Create the client and verify the server answers"""
        if self._client is None:
            try:
                self._client = redis.Redis.from_url(
                    self.url,
                    socket_timeout=self.socket_timeout,
                    socket_connect_timeout=self.socket_timeout,
                    decode_responses=False,
                )
            except (ValueError, RedisError) as e:
                raise StoreError(f"Invalid Redis URL: {e}") from e

        try:
            self._client.ping()
        except CLIENT_ERRORS as e:
            self.disconnect()
            raise StoreError(f"Cannot reach Redis: {e}") from e
        logger.info("Connected to Redis cache store")

    def disconnect(self) -> None:
        if self._client is None:
            return
        try:
            self._client.close()
        except CLIENT_ERRORS as e:
            logger.warning(f"Error while closing Redis connection: {e}")
        finally:
            self._client = None
        logger.info("Disconnected from Redis cache store")

    def get_memory_info(self) -> MemoryReport:
        """Read used_memory and maxmemory from INFO memory"""
        try:
            info = self.client.info("memory")
        except CLIENT_ERRORS as e:
            raise StoreError(f"INFO memory failed: {e}") from e

        return MemoryReport(
            used_bytes=self._int_field(info, "used_memory"),
            max_bytes=self._int_field(info, "maxmemory"),
        )

    def scan_keys(self, cursor: str, pattern: str, batch_size: int) -> Tuple[str, List[str]]:
        try:
            next_cursor, keys = self.client.scan(cursor=int(cursor), match=encode_key(pattern), count=batch_size)
        except CLIENT_ERRORS as e:
            raise StoreError(f"SCAN {cursor} MATCH {pattern} failed: {e}") from e

        return str(int(next_cursor)), [decode_key(key) for key in keys]

    def delete_keys(self, keys: Sequence[str]) -> int:
        """Issue a single DEL for the whole batch"""
        if not keys:
            return 0
        try:
            return int(self.client.delete(*[encode_key(key) for key in keys]))
        except CLIENT_ERRORS as e:
            raise StoreError(f"DEL of {len(keys)} keys failed: {e}") from e

    @staticmethod
    def _int_field(info: dict, name: str) -> int:
        # Missing or malformed fields read as 0, i.e. "no ceiling"
        try:
            return max(0, int(info.get(name, 0) or 0))
        except (TypeError, ValueError):
            logger.warning(f"Unparseable {name} in INFO memory: {info.get(name)!r}")
            return 0
