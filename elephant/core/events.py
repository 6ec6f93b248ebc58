from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

EventType = Literal[
    "game_started",
    "opened",
    "stolen",
    "traded",
    "swapped",
    "kept",
    "final_round",
    "game_ended",
]


class _Event(BaseModel):
    """Common shape of every action log entry.

    Names are copied into the event when it happens, so the log keeps reading
    the same even if a player record changes later.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime


class GameStartedEvent(_Event):
    type: Literal["game_started"] = "game_started"
    turn_order: list[str]


class GiftOpenedEvent(_Event):
    type: Literal["opened"] = "opened"
    player_id: str
    player_name: str
    gift_id: str
    gift_name: str


class GiftStolenEvent(_Event):
    type: Literal["stolen"] = "stolen"
    player_id: str
    player_name: str
    gift_id: str
    gift_name: str
    from_player_id: str | None = None
    from_player_name: str | None = None


class GiftTradedEvent(_Event):
    """A final-round steal: the stealer's own gift goes back the other way."""

    type: Literal["traded"] = "traded"
    player_id: str
    player_name: str
    gift_id: str
    gift_name: str
    from_player_id: str | None = None
    from_player_name: str | None = None
    given_gift_id: str | None = None
    given_gift_name: str | None = None


class GiftSwappedEvent(_Event):
    type: Literal["swapped"] = "swapped"
    player_id: str
    player_name: str
    gift_id: str
    gift_name: str
    from_player_id: str | None = None
    from_player_name: str | None = None
    given_gift_id: str | None = None
    given_gift_name: str | None = None


class GiftKeptEvent(_Event):
    type: Literal["kept"] = "kept"
    player_id: str
    player_name: str
    gift_name: str


class FinalRoundEvent(_Event):
    type: Literal["final_round"] = "final_round"
    player_name: str
    final_round_type: str


class GameResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_name: str
    gift_name: str
    gift_description: str
    brought_by: str


class GameEndedEvent(_Event):
    type: Literal["game_ended"] = "game_ended"
    results: list[GameResult]


ActionEvent = Annotated[
    Union[
        GameStartedEvent,
        GiftOpenedEvent,
        GiftStolenEvent,
        GiftTradedEvent,
        GiftSwappedEvent,
        GiftKeptEvent,
        FinalRoundEvent,
        GameEndedEvent,
    ],
    Field(discriminator="type"),
]
