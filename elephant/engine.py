"""White elephant rules engine.

Every operation takes a `Party` and returns either a new `Party` with the
transition applied or a `Rejected`. The incoming party is never mutated, so a
rejection leaves the caller's record (including `last_updated` and `actions`)
exactly as it was.
"""

from __future__ import annotations

import random
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from elephant.api.models import FinalRoundType, Gift, Party, PartyPlayer, SettingsUpdate
from elephant.core.events import (
    GameStartedEvent,
    GiftKeptEvent,
    GiftOpenedEvent,
    GiftStolenEvent,
    GiftSwappedEvent,
    GiftTradedEvent,
)
from elephant.core.outcome import Outcome, Rejected
from elephant.fsm import PartyFSM
from elephant.turn_processing.turns import advance_turn, end_game
from elephant.turn_processing.validators import ValidationContext, pipeline_for_action

DEFAULT_MAX_STEALS = 3
MIN_MAX_STEALS = 1
MAX_MAX_STEALS = 10

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _now() -> datetime:
    return datetime.now(tz=UTC)


def new_id() -> str:
    """Short, URL-safe id (first 8 hex chars of a uuid4)."""

    return uuid4().hex[:8]


@dataclass(frozen=True, slots=True)
class EngineDeps:
    """Clock, id source and randomness used by the engine."""

    now: Callable[[], datetime] = _now
    new_id: Callable[[], str] = new_id
    rng: random.Random = field(default_factory=random.SystemRandom)


DEFAULT_DEPS = EngineDeps()


def normalize_max_steals(value: object) -> int:
    """Parse a loose max-steals value and clamp it into [1, 10].

    Unparseable input and zero fall back to the default of 3.
    """

    match = _LEADING_INT.match(str(value))
    parsed = int(match.group(1)) if match else 0
    if parsed == 0:
        parsed = DEFAULT_MAX_STEALS
    return max(MIN_MAX_STEALS, min(MAX_MAX_STEALS, parsed))


def _check(action: str, party: Party, *, player_id: str | None = None, gift_id: str | None = None) -> Rejected | None:
    ctx = ValidationContext(party_id=party.party_id, action=action, player_id=player_id, gift_id=gift_id)
    return pipeline_for_action(action).validate(ctx=ctx, party=party)


def _working_copy(party: Party) -> Party:
    return party.model_copy(deep=True)


# Ids passed here were already checked by the validators.
def _require_player(party: Party, player_id: str) -> PartyPlayer:
    player = party.find_player(player_id)
    if player is None:
        raise RuntimeError(f"Player {player_id} missing from party {party.party_id}")
    return player


def _require_gift(party: Party, gift_id: str) -> Gift:
    gift = party.find_gift(gift_id)
    if gift is None:
        raise RuntimeError(f"Gift {gift_id} missing from party {party.party_id}")
    return gift


def create_party(host_name: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Party:
    now = deps.now()
    host_id = deps.new_id()
    return Party(
        party_id=deps.new_id(),
        host_id=host_id,
        host_name=host_name,
        players=[PartyPlayer(player_id=host_id, name=host_name, is_host=True)],
        created_at=now,
        last_updated=now,
    )


def add_player(party: Party, player_name: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Outcome:
    """Append a new non-host player; the new player is `players[-1]`."""

    rejected = _check("join", party)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    nxt.players.append(PartyPlayer(player_id=deps.new_id(), name=player_name))
    nxt.last_updated = deps.now()
    return nxt


def begin_registration(party: Party, caller_id: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Outcome:
    rejected = _check("register", party, player_id=caller_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    PartyFSM(nxt).try_send("begin_registration")
    nxt.last_updated = deps.now()
    return nxt


def register_gift(
    party: Party,
    player_id: str,
    name: str,
    description: str = "",
    *,
    deps: EngineDeps = DEFAULT_DEPS,
) -> Outcome:
    """Register the player's gift; the new gift is `gifts[-1]`.

    Not gated on party state: a player may register whenever they exist and
    have not registered yet.
    """

    rejected = _check("gift", party, player_id=player_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    player = _require_player(nxt, player_id)

    gift = Gift(
        gift_id=deps.new_id(),
        name=name,
        description=description,
        brought_by=player.player_id,
        brought_by_name=player.name,
    )
    player.gift_id = gift.gift_id
    nxt.gifts.append(gift)
    nxt.steal_count[gift.gift_id] = 0
    nxt.last_updated = deps.now()
    return nxt


def update_settings(
    party: Party,
    caller_id: str,
    settings: SettingsUpdate,
    *,
    deps: EngineDeps = DEFAULT_DEPS,
) -> Outcome:
    rejected = _check("settings", party, player_id=caller_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    if settings.final_round_type is not None:
        nxt.final_round_type = settings.final_round_type
    if settings.final_swap_allow_locked is not None:
        nxt.final_swap_allow_locked = settings.final_swap_allow_locked
    if settings.max_steals is not None:
        nxt.max_steals = normalize_max_steals(settings.max_steals)
    nxt.last_updated = deps.now()
    return nxt


def start_game(party: Party, caller_id: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Outcome:
    rejected = _check("start", party, player_id=caller_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    now = deps.now()

    order = [p.player_id for p in nxt.players]
    deps.rng.shuffle(order)

    nxt.turn_order = order
    nxt.current_turn_index = 0
    nxt.current_player_id = order[0]
    PartyFSM(nxt).try_send("start_game")

    names = [_require_player(nxt, pid).name for pid in order]
    nxt.actions.append(GameStartedEvent(timestamp=now, turn_order=names))
    nxt.last_updated = now
    return nxt


def open_gift(party: Party, player_id: str, gift_id: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Outcome:
    rejected = _check("open", party, player_id=player_id, gift_id=gift_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    now = deps.now()
    player = _require_player(nxt, player_id)
    gift = _require_gift(nxt, gift_id)

    gift.opened = True
    gift.current_holder = player.player_id
    gift.current_holder_name = player.name
    player.current_gift_id = gift.gift_id

    nxt.actions.append(
        GiftOpenedEvent(
            timestamp=now,
            player_id=player.player_id,
            player_name=player.name,
            gift_id=gift.gift_id,
            gift_name=gift.name,
        )
    )

    nxt.last_stolen_gift_id = None
    advance_turn(party=nxt, now=now)
    nxt.last_updated = now
    return nxt


def steal_gift(party: Party, player_id: str, gift_id: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Outcome:
    """Take an opened gift from its holder.

    Main phase: the holder is left empty-handed and gets the next turn.
    Final round: a trade; the stealer's gift goes to the previous holder. A
    swap final round ends right after; a chain final round hands the turn to
    the previous holder.
    """

    rejected = _check("steal", party, player_id=player_id, gift_id=gift_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    now = deps.now()
    player = _require_player(nxt, player_id)
    gift = _require_gift(nxt, gift_id)

    previous_holder = nxt.find_player(gift.current_holder)
    given = nxt.find_gift(player.current_gift_id)

    if nxt.in_final_round and previous_holder is not None and given is not None:
        previous_holder.current_gift_id = given.gift_id
        given.current_holder = previous_holder.player_id
        given.current_holder_name = previous_holder.name
    elif previous_holder is not None:
        previous_holder.current_gift_id = None

    gift.current_holder = player.player_id
    gift.current_holder_name = player.name
    player.current_gift_id = gift.gift_id
    nxt.steal_count[gift.gift_id] = nxt.steal_count.get(gift.gift_id, 0) + 1
    nxt.last_stolen_gift_id = gift.gift_id

    from_id = previous_holder.player_id if previous_holder is not None else None
    from_name = previous_holder.name if previous_holder is not None else None

    if nxt.in_final_round:
        nxt.actions.append(
            GiftTradedEvent(
                timestamp=now,
                player_id=player.player_id,
                player_name=player.name,
                gift_id=gift.gift_id,
                gift_name=gift.name,
                from_player_id=from_id,
                from_player_name=from_name,
                given_gift_id=given.gift_id if given is not None else None,
                given_gift_name=given.name if given is not None else None,
            )
        )
        if nxt.final_round_type == FinalRoundType.chain and previous_holder is not None:
            nxt.current_player_id = previous_holder.player_id
        else:
            end_game(party=nxt, now=now)
        nxt.last_updated = now
        return nxt

    nxt.actions.append(
        GiftStolenEvent(
            timestamp=now,
            player_id=player.player_id,
            player_name=player.name,
            gift_id=gift.gift_id,
            gift_name=gift.name,
            from_player_id=from_id,
            from_player_name=from_name,
        )
    )
    if previous_holder is not None:
        nxt.current_player_id = previous_holder.player_id
    nxt.last_updated = now
    return nxt


def keep_gift(party: Party, player_id: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Outcome:
    """Final round only: keep what you hold. Always ends the game."""

    rejected = _check("keep", party, player_id=player_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    now = deps.now()
    player = _require_player(nxt, player_id)
    held = nxt.find_gift(player.current_gift_id)

    nxt.actions.append(
        GiftKeptEvent(
            timestamp=now,
            player_id=player.player_id,
            player_name=player.name,
            gift_name=held.name if held is not None else "their gift",
        )
    )
    end_game(party=nxt, now=now)
    nxt.last_updated = now
    return nxt


def swap_gift(party: Party, player_id: str, gift_id: str, *, deps: EngineDeps = DEFAULT_DEPS) -> Outcome:
    """Swap-variant final round: exchange gifts with the holder and end the game.

    Does not count towards `steal_count`.
    """

    rejected = _check("swap", party, player_id=player_id, gift_id=gift_id)
    if rejected is not None:
        return rejected

    nxt = _working_copy(party)
    now = deps.now()
    player = _require_player(nxt, player_id)
    gift = _require_gift(nxt, gift_id)

    previous_holder = nxt.find_player(gift.current_holder)
    given = nxt.find_gift(player.current_gift_id)

    if previous_holder is not None and given is not None:
        previous_holder.current_gift_id = given.gift_id
        given.current_holder = previous_holder.player_id
        given.current_holder_name = previous_holder.name

    gift.current_holder = player.player_id
    gift.current_holder_name = player.name
    player.current_gift_id = gift.gift_id

    nxt.actions.append(
        GiftSwappedEvent(
            timestamp=now,
            player_id=player.player_id,
            player_name=player.name,
            gift_id=gift.gift_id,
            gift_name=gift.name,
            from_player_id=previous_holder.player_id if previous_holder is not None else None,
            from_player_name=previous_holder.name if previous_holder is not None else None,
            given_gift_id=given.gift_id if given is not None else None,
            given_gift_name=given.name if given is not None else None,
        )
    )
    end_game(party=nxt, now=now)
    nxt.last_updated = now
    return nxt
