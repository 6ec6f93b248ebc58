from __future__ import annotations

from collections.abc import Generator

from elephant.engine import DEFAULT_DEPS, EngineDeps
from elephant.infra.redis_client import create_redis, get_party_ttl_seconds, get_store_backend
from elephant.party_store import InMemoryPartyStore, PartyStore, RedisPartyStore

# Shared across requests when ELEPHANT_STORE=memory.
_MEMORY_STORE = InMemoryPartyStore()


def get_store() -> Generator[PartyStore, None, None]:
    if get_store_backend() == "memory":
        yield _MEMORY_STORE
        return

    client = create_redis()
    try:
        yield RedisPartyStore(client, ttl_seconds=get_party_ttl_seconds())
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_engine_deps() -> EngineDeps:
    return DEFAULT_DEPS
