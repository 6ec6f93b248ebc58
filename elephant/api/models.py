from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from elephant.core.events import ActionEvent


class PartyState(StrEnum):
    waiting = "waiting"
    registering = "registering"
    playing = "playing"
    finished = "finished"


class FinalRoundType(StrEnum):
    none = "none"
    swap = "swap"
    chain = "chain"


class PartyPlayer(BaseModel):
    player_id: str
    name: str
    is_host: bool = False

    # The gift this player brought (set once, at registration).
    gift_id: str | None = None

    # The gift this player holds right now; changes on open/steal/trade/swap.
    current_gift_id: str | None = None


class Gift(BaseModel):
    gift_id: str
    name: str
    description: str = ""

    brought_by: str
    brought_by_name: str

    opened: bool = False

    # Holder name is a snapshot taken when the gift changes hands.
    current_holder: str | None = None
    current_holder_name: str | None = None


class Party(BaseModel):
    party_id: str
    host_id: str
    host_name: str

    state: PartyState = PartyState.waiting

    players: list[PartyPlayer] = Field(default_factory=list)
    gifts: list[Gift] = Field(default_factory=list)

    # Player ids, fixed once the game starts.
    turn_order: list[str] = Field(default_factory=list)
    current_turn_index: int = 0
    current_player_id: str | None = None

    # Append-only history.
    actions: list[ActionEvent] = Field(default_factory=list)

    steal_count: dict[str, int] = Field(default_factory=dict)
    max_steals: int = 3
    last_stolen_gift_id: str | None = None

    final_round_type: FinalRoundType = FinalRoundType.none
    final_swap_allow_locked: bool = False
    in_final_round: bool = False

    created_at: datetime
    last_updated: datetime

    def find_player(self, player_id: str | None) -> PartyPlayer | None:
        if player_id is None:
            return None
        return next((p for p in self.players if p.player_id == player_id), None)

    def find_gift(self, gift_id: str | None) -> Gift | None:
        if gift_id is None:
            return None
        return next((g for g in self.gifts if g.gift_id == gift_id), None)


class SettingsUpdate(BaseModel):
    """Pre-game settings; `None` means "leave unchanged"."""

    final_round_type: FinalRoundType | None = None
    final_swap_allow_locked: bool | None = None

    # Any JSON value ("5", 12, 2.5, "abc", true); the engine normalizes it.
    max_steals: Any = None


# --- HTTP request/response bodies ---


class PartyCreateRequest(BaseModel):
    host_name: str = Field(..., min_length=1, max_length=100)


class JoinRequest(BaseModel):
    player_name: str = Field(..., min_length=1, max_length=100)


class HostRequest(BaseModel):
    host_id: str


class GiftRegisterRequest(BaseModel):
    player_id: str
    gift_name: str = Field(..., min_length=1, max_length=100)
    gift_description: str = Field(default="", max_length=1000)


class SettingsRequest(SettingsUpdate):
    host_id: str


class GiftActionRequest(BaseModel):
    player_id: str
    gift_id: str


class KeepRequest(BaseModel):
    player_id: str
