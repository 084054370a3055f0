import fnmatch

import pytest

from config.config import GameSettings
from db.redis_client import RedisClient
from games.countdown import CountdownGame


class FakeRedis:
    """In-memory stand-in for the parts of redis.Redis the bot uses."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        self.store[key] = value
        return True

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return key in self.store

    def hget(self, key, field):
        return self.store.get(key, {}).get(field)

    def hset(self, key, field, value):
        self.store.setdefault(key, {})[field] = value
        return 1

    def hgetall(self, key):
        return dict(self.store.get(key, {}))

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def scan_iter(self, match=None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatch(key, match):
                yield key


@pytest.fixture
def redis_client():
    client = RedisClient('localhost', 6379, solution_ttl=60)
    client.redis = FakeRedis()
    return client


@pytest.fixture
def settings():
    """Deterministic deal: numbers [100, 5, 5], target 110."""
    return GameSettings(
        large_numbers=[100],
        small_numbers=[5],
        num_large=1,
        num_small=2,
        target_min=110,
        target_max=110,
        round_duration=60,
        max_tiles=6,
        solution_ttl=60,
    )


@pytest.fixture
def game(redis_client, settings):
    return CountdownGame(redis_client, settings)
