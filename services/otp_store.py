"""
Expiring key/value stores for one-time passwords

The in-memory store serves a single process (development and tests); the
Redis store is shared between workers.
"""

import json
import logging
import threading
import time

import redis

logger = logging.getLogger(__name__)


class ExpiringStore:
    """Key/value store whose entries disappear after a TTL"""

    def set(self, key, value, ttl_seconds):
        raise NotImplementedError

    def add(self, key, value, ttl_seconds):
        """Set only if the key is absent; returns True when stored"""
        raise NotImplementedError

    def get(self, key):
        raise NotImplementedError

    def pop(self, key):
        """Atomically read and remove a key"""
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError


class MemoryExpiringStore(ExpiringStore):

    def __init__(self, clock=time.monotonic):
        self._data = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, key):
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    def set(self, key, value, ttl_seconds):
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    def add(self, key, value, ttl_seconds):
        with self._lock:
            if self._live(key) is not None:
                return False
            self._data[key] = (value, self._clock() + ttl_seconds)
            return True

    def get(self, key):
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def pop(self, key):
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            del self._data[key]
            return entry[0]

    def delete(self, key):
        with self._lock:
            self._data.pop(key, None)


class RedisExpiringStore(ExpiringStore):
    """Values are stored as JSON so dicts survive the round trip"""

    def __init__(self, client, prefix='accommodation:'):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url, **kwargs):
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
        return cls(client, **kwargs)

    def _key(self, key):
        return f'{self.prefix}{key}'

    def set(self, key, value, ttl_seconds):
        self.client.set(self._key(key), json.dumps(value, default=str), ex=ttl_seconds)

    def add(self, key, value, ttl_seconds):
        return bool(self.client.set(self._key(key), json.dumps(value, default=str), ex=ttl_seconds, nx=True))

    def get(self, key):
        raw = self.client.get(self._key(key))
        return json.loads(raw) if raw is not None else None

    def pop(self, key):
        pipe = self.client.pipeline(transaction=True)
        pipe.get(self._key(key))
        pipe.delete(self._key(key))
        raw, _ = pipe.execute()
        return json.loads(raw) if raw is not None else None

    def delete(self, key):
        self.client.delete(self._key(key))


def create_expiring_store(url=None):
    """
    Build a store from a URL

    Args:
        url: None or memory:// for the in-process store,
            redis:// / rediss:// / unix:// for Redis
    """
    if not url or url.startswith('memory://'):
        return MemoryExpiringStore()

    if url.startswith(('redis://', 'rediss://', 'unix://')):
        logger.info('Using Redis for OTP storage')
        return RedisExpiringStore.from_url(url)

    raise ValueError(f'Unsupported OTP store URL: {url}')
