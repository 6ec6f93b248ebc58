from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager

import redis

from elephant.api.models import Party
from elephant.infra.redis_client import DEFAULT_PARTY_TTL_SECONDS
from elephant.lock import PartyBusyError, party_lock

PARTY_KEY_PREFIX = "party:"  # + {party_id}


def _party_key(party_id: str) -> str:
    return f"{PARTY_KEY_PREFIX}{party_id}"


class PartyStore(ABC):
    """Where party records live between requests.

    Last writer wins; callers that read-modify-write must hold `lock(party_id)`.
    """

    @abstractmethod
    def get(self, party_id: str) -> Party | None:
        raise NotImplementedError

    @abstractmethod
    def put(self, party: Party) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, party_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_ids(self) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def lock(self, party_id: str) -> AbstractContextManager[None]:
        raise NotImplementedError


class RedisPartyStore(PartyStore):
    def __init__(
        self,
        r: redis.Redis,
        *,
        ttl_seconds: int = DEFAULT_PARTY_TTL_SECONDS,
        lock_wait_ms: int = 2_000,
    ) -> None:
        self.r = r
        self.ttl_seconds = ttl_seconds
        self.lock_wait_ms = lock_wait_ms

    def get(self, party_id: str) -> Party | None:
        raw = self.r.get(_party_key(party_id))
        if not raw:
            return None
        return Party.model_validate_json(raw)

    def put(self, party: Party) -> None:
        self.r.set(_party_key(party.party_id), party.model_dump_json(), ex=self.ttl_seconds)

    def delete(self, party_id: str) -> bool:
        return bool(self.r.delete(_party_key(party_id)))

    def list_ids(self) -> list[str]:
        ids: list[str] = []
        for key in self.r.scan_iter(match=f"{PARTY_KEY_PREFIX}*"):
            k = key.decode() if isinstance(key, bytes) else key
            ids.append(k.removeprefix(PARTY_KEY_PREFIX))
        return sorted(ids)

    def lock(self, party_id: str) -> AbstractContextManager[None]:
        return party_lock(r=self.r, party_id=party_id, wait_ms=self.lock_wait_ms)


class InMemoryPartyStore(PartyStore):
    """Process-local store for tests and single-process dev runs.

    Records are kept as JSON so a caller mutating a returned Party never
    changes what is stored.
    """

    def __init__(self, *, lock_timeout: float = 2.0) -> None:
        self.lock_timeout = lock_timeout
        self._records: dict[str, str] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, party_id: str) -> Party | None:
        raw = self._records.get(party_id)
        if raw is None:
            return None
        return Party.model_validate_json(raw)

    def put(self, party: Party) -> None:
        self._records[party.party_id] = party.model_dump_json()

    def delete(self, party_id: str) -> bool:
        with self._guard:
            self._locks.pop(party_id, None)
        return self._records.pop(party_id, None) is not None

    def list_ids(self) -> list[str]:
        return sorted(self._records)

    @contextmanager
    def _locked(self, party_id: str, timeout: float) -> Iterator[None]:
        with self._guard:
            lk = self._locks.setdefault(party_id, threading.Lock())
        if not lk.acquire(timeout=timeout):
            raise PartyBusyError("Party is busy")
        try:
            yield
        finally:
            lk.release()

    def lock(self, party_id: str) -> AbstractContextManager[None]:
        return self._locked(party_id, timeout=self.lock_timeout)
