from __future__ import annotations

from collections.abc import Sequence

from elephant.core.events import (
    ActionEvent,
    FinalRoundEvent,
    GameEndedEvent,
    GameStartedEvent,
    GiftKeptEvent,
    GiftOpenedEvent,
    GiftStolenEvent,
    GiftSwappedEvent,
    GiftTradedEvent,
)


def _who(name: str | None) -> str:
    return name or "someone"


def describe_action(event: ActionEvent) -> str:
    """One human-readable line for the action log.

    Uses only the names captured in the event, never the live party.
    """

    if isinstance(event, GameStartedEvent):
        return f"Game started! Turn order: {' → '.join(event.turn_order)}"
    if isinstance(event, GiftOpenedEvent):
        return f'{event.player_name} opened "{event.gift_name}"!'
    if isinstance(event, GiftStolenEvent):
        return f'{event.player_name} stole "{event.gift_name}" from {_who(event.from_player_name)}!'
    if isinstance(event, GiftTradedEvent):
        given = f' for "{event.given_gift_name}"' if event.given_gift_name else ""
        return f'{event.player_name} traded{given} and took "{event.gift_name}" from {_who(event.from_player_name)}!'
    if isinstance(event, GiftSwappedEvent):
        given = f' for "{event.given_gift_name}"' if event.given_gift_name else ""
        return f'{event.player_name} swapped{given} and took "{event.gift_name}" from {_who(event.from_player_name)}!'
    if isinstance(event, GiftKeptEvent):
        return f'{event.player_name} kept "{event.gift_name}".'
    if isinstance(event, FinalRoundEvent):
        return f"Final round ({event.final_round_type})! {event.player_name} goes first."
    if isinstance(event, GameEndedEvent):
        return "Game over!"
    raise TypeError(f"Unknown action event: {type(event).__name__}")


def action_log_lines(actions: Sequence[ActionEvent]) -> list[str]:
    """Newest first, matching how the log is displayed."""

    return [describe_action(a) for a in reversed(actions)]
