from __future__ import annotations

import itertools
import random
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from fastapi.testclient import TestClient

from elephant import engine
from elephant.api.models import FinalRoundType, Party, SettingsUpdate
from elephant.core.outcome import Outcome
from elephant.engine import EngineDeps
from elephant.party_store import RedisPartyStore


class _SteppingClock:
    """Every call is one second later than the previous one."""

    def __init__(self) -> None:
        self._t = datetime(2025, 12, 24, 18, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self._t += timedelta(seconds=1)
        return self._t


def _counter_ids() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"id{next(counter):04d}"


@pytest.fixture()
def deps() -> EngineDeps:
    """Deterministic clock, ids and turn order."""

    return EngineDeps(now=_SteppingClock(), new_id=_counter_ids(), rng=random.Random(1234))


def _ok(outcome: Outcome) -> Party:
    assert isinstance(outcome, Party), outcome
    return outcome


@pytest.fixture()
def make_playing_party(deps: EngineDeps) -> Callable[..., Party]:
    """Factory: a started party where everyone registered "<name>'s gift"."""

    def _make(
        names: list[str],
        *,
        max_steals: int = 3,
        final_round_type: FinalRoundType = FinalRoundType.none,
        allow_locked: bool = False,
    ) -> Party:
        party = engine.create_party(names[0], deps=deps)
        for name in names[1:]:
            party = _ok(engine.add_player(party, name, deps=deps))
        party = _ok(
            engine.update_settings(
                party,
                party.host_id,
                SettingsUpdate(
                    max_steals=max_steals,
                    final_round_type=final_round_type,
                    final_swap_allow_locked=allow_locked,
                ),
                deps=deps,
            )
        )
        party = _ok(engine.begin_registration(party, party.host_id, deps=deps))
        for p in list(party.players):
            party = _ok(engine.register_gift(party, p.player_id, f"{p.name}'s gift", f"wrapped by {p.name}", deps=deps))
        return _ok(engine.start_game(party, party.host_id, deps=deps))

    return _make


@pytest.fixture()
def redis_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def store(redis_client: fakeredis.FakeRedis) -> RedisPartyStore:
    return RedisPartyStore(redis_client, ttl_seconds=3600, lock_wait_ms=50)


@pytest.fixture()
def client(store: RedisPartyStore, deps: EngineDeps) -> Generator[TestClient, None, None]:
    """FastAPI TestClient backed by fakeredis and deterministic engine deps."""

    from elephant.api.deps import get_engine_deps, get_store
    from elephant.main import app

    def _override_store() -> Generator[RedisPartyStore, None, None]:
        yield store

    app.dependency_overrides[get_store] = _override_store
    app.dependency_overrides[get_engine_deps] = lambda: deps
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
