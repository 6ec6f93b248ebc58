from __future__ import annotations

from datetime import datetime

from elephant.api.models import FinalRoundType, Party
from elephant.core.events import FinalRoundEvent, GameEndedEvent, GameResult
from elephant.fsm import PartyFSM


def advance_turn(*, party: Party, now: datetime) -> None:
    """Move the turn pointer after a gift was opened.

    Policy:
    - every opened gift advances `current_turn_index` by one
    - once no wrapped gifts remain, enter the final round (if configured and not
      yet played) or end the game
    - otherwise the next player in turn order without a gift takes the turn
    - when the turn order is exhausted, fall back to the first player (join
      order) without a gift; if there is none, the game ends

    Mutates `party` in place; callers hand in a working copy.
    """

    party.current_turn_index += 1

    if all(g.opened for g in party.gifts):
        if party.final_round_type != FinalRoundType.none and not party.in_final_round:
            enter_final_round(party=party, now=now)
            return
        end_game(party=party, now=now)
        return

    while party.current_turn_index < len(party.turn_order):
        next_player = party.find_player(party.turn_order[party.current_turn_index])
        if next_player is not None and next_player.current_gift_id is None:
            party.current_player_id = next_player.player_id
            return
        party.current_turn_index += 1

    empty_handed = next((p for p in party.players if p.current_gift_id is None), None)
    if empty_handed is not None:
        party.current_player_id = empty_handed.player_id
    else:
        end_game(party=party, now=now)


def enter_final_round(*, party: Party, now: datetime) -> None:
    first = party.find_player(party.turn_order[0])
    party.in_final_round = True
    party.current_player_id = party.turn_order[0]
    party.last_stolen_gift_id = None
    party.actions.append(
        FinalRoundEvent(
            timestamp=now,
            player_name=first.name if first is not None else "",
            final_round_type=party.final_round_type.value,
        )
    )


def end_game(*, party: Party, now: datetime) -> None:
    fsm = PartyFSM(party)
    if not fsm.try_send("end_game"):
        raise RuntimeError(f"Cannot end a party in state '{party.state.value}'")

    party.current_player_id = None

    results: list[GameResult] = []
    for p in party.players:
        gift = party.find_gift(p.current_gift_id)
        results.append(
            GameResult(
                player_name=p.name,
                gift_name=gift.name if gift is not None else "No gift",
                gift_description=gift.description if gift is not None else "",
                brought_by=gift.brought_by_name if gift is not None else "Unknown",
            )
        )

    party.actions.append(GameEndedEvent(timestamp=now, results=results))
