from __future__ import annotations

import os

import redis

DEFAULT_PARTY_TTL_SECONDS = 24 * 60 * 60


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def get_party_ttl_seconds() -> int:
    raw = os.environ.get("PARTY_TTL_SECONDS")
    if not raw:
        return DEFAULT_PARTY_TTL_SECONDS
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_PARTY_TTL_SECONDS


def get_store_backend() -> str:
    # "redis" (default) or "memory" for local runs without a Redis server.
    return os.environ.get("ELEPHANT_STORE", "redis").strip().casefold()


def create_redis() -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(get_redis_url(), decode_responses=True)
