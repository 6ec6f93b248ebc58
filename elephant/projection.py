"""Client-facing view of a party.

Every party that leaves the server goes through `project_for_client`. Wrapped
gifts must not reveal what they are or who brought them, and the registered
gift id of each player stays server-side.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from elephant.api.models import FinalRoundType, Party, PartyState
from elephant.core.action_text import action_log_lines
from elephant.core.events import ActionEvent

HIDDEN = "???"


class ClientPlayer(BaseModel):
    player_id: str
    name: str
    is_host: bool
    has_gift: bool
    current_gift_id: str | None = None


class ClientGift(BaseModel):
    gift_id: str
    name: str
    description: str
    opened: bool
    current_holder: str | None = None
    current_holder_name: str | None = None
    brought_by_name: str
    steal_count: int
    max_steals: int
    locked: bool


class ClientView(BaseModel):
    party_id: str
    host_id: str
    host_name: str
    state: PartyState

    players: list[ClientPlayer]
    gifts: list[ClientGift]

    current_player_id: str | None = None
    current_player_name: str | None = None

    # Display names in turn order.
    turn_order: list[str]

    actions: list[ActionEvent]
    log: list[str]

    last_stolen_gift_id: str | None = None
    final_round_type: FinalRoundType
    final_swap_allow_locked: bool
    in_final_round: bool
    max_steals: int
    last_updated: datetime


def project_for_client(party: Party) -> ClientView:
    players = [
        ClientPlayer(
            player_id=p.player_id,
            name=p.name,
            is_host=p.is_host,
            has_gift=p.gift_id is not None,
            current_gift_id=p.current_gift_id,
        )
        for p in party.players
    ]

    gifts: list[ClientGift] = []
    for g in party.gifts:
        steals = party.steal_count.get(g.gift_id, 0)
        gifts.append(
            ClientGift(
                gift_id=g.gift_id,
                name=g.name if g.opened else HIDDEN,
                description=g.description if g.opened else "",
                opened=g.opened,
                current_holder=g.current_holder,
                current_holder_name=g.current_holder_name,
                brought_by_name=g.brought_by_name if g.opened else HIDDEN,
                steal_count=steals,
                max_steals=party.max_steals,
                locked=steals >= party.max_steals,
            )
        )

    current = party.find_player(party.current_player_id)
    turn_order: list[str] = []
    for pid in party.turn_order:
        p = party.find_player(pid)
        turn_order.append(p.name if p is not None else "")

    return ClientView(
        party_id=party.party_id,
        host_id=party.host_id,
        host_name=party.host_name,
        state=party.state,
        players=players,
        gifts=gifts,
        current_player_id=party.current_player_id,
        current_player_name=current.name if current is not None else None,
        turn_order=turn_order,
        actions=list(party.actions),
        log=action_log_lines(party.actions),
        last_stolen_gift_id=party.last_stolen_gift_id,
        final_round_type=party.final_round_type,
        final_swap_allow_locked=party.final_swap_allow_locked,
        in_final_round=party.in_final_round,
        max_steals=party.max_steals,
        last_updated=party.last_updated,
    )
