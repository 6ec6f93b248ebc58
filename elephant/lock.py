from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from uuid import uuid4

import redis

logger = logging.getLogger(__name__)


class PartyBusyError(RuntimeError):
    """Another request holds the per-party lock."""


def _lock_key(party_id: str) -> str:
    return f"lock:party:{party_id}"


@contextmanager
def party_lock(
    *,
    r: redis.Redis,
    party_id: str,
    ttl_ms: int = 5_000,
    wait_ms: int = 2_000,
    retry_ms: int = 25,
):
    """Best-effort per-party lock.

    Each holder writes a unique token and only deletes the key if the token is
    still its own, so an expired lock taken over by someone else is left alone.
    The check-and-delete is two round trips, not a Lua script; good enough for
    a turn-based game where the TTL is far longer than one request.
    """

    key = _lock_key(party_id)
    token = uuid4().hex
    deadline = time.monotonic() + wait_ms / 1000

    while not r.set(key, token, nx=True, px=ttl_ms):
        if time.monotonic() >= deadline:
            logger.warning("party %s is busy; gave up after %d ms", party_id, wait_ms)
            raise PartyBusyError("Party is busy")
        time.sleep(retry_ms / 1000)

    try:
        yield
    finally:
        if r.get(key) in (token, token.encode()):
            r.delete(key)
