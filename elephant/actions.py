from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError

from elephant import engine
from elephant.api.models import Party, SettingsUpdate
from elephant.core.outcome import Outcome, Rejected
from elephant.engine import DEFAULT_DEPS, EngineDeps
from elephant.party_store import PartyStore
from elephant.projection import ClientView, project_for_client

logger = logging.getLogger(__name__)


ActionName = Literal["join", "register", "gift", "settings", "start", "open", "steal", "keep", "swap"]

ACTION_NAMES: frozenset[str] = frozenset({"join", "register", "gift", "settings", "start", "open", "steal", "keep", "swap"})


class ActionRejectedError(ValueError):
    """The engine refused the action; carries the `Rejected` outcome."""

    def __init__(self, rejected: Rejected) -> None:
        super().__init__(rejected.message)
        self.rejected = rejected


@dataclass(frozen=True, slots=True)
class ActionResult:
    party: Party
    view: ClientView
    # Set for "join" (the new player) and "gift" (the new gift).
    player_id: str | None = None
    gift_id: str | None = None


def _str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return "" if value is None else str(value)


def _settings_from(payload: dict[str, Any]) -> SettingsUpdate | Rejected:
    fields = {k: payload[k] for k in ("final_round_type", "final_swap_allow_locked", "max_steals") if k in payload}
    try:
        return SettingsUpdate.model_validate(fields)
    except ValidationError as e:
        return Rejected.rule_violation(f"Invalid settings: {e.errors()[0].get('msg', 'invalid value')}")


def _apply_settings(party: Party, payload: dict[str, Any], deps: EngineDeps) -> Outcome:
    settings = _settings_from(payload)
    if isinstance(settings, Rejected):
        return settings
    return engine.update_settings(party, _str(payload, "host_id"), settings, deps=deps)


Handler = Callable[[Party, dict[str, Any], EngineDeps], Outcome]

_HANDLERS: dict[str, Handler] = {
    "join": lambda party, p, deps: engine.add_player(party, _str(p, "player_name"), deps=deps),
    "register": lambda party, p, deps: engine.begin_registration(party, _str(p, "host_id"), deps=deps),
    "gift": lambda party, p, deps: engine.register_gift(
        party,
        _str(p, "player_id"),
        _str(p, "gift_name"),
        _str(p, "gift_description"),
        deps=deps,
    ),
    "settings": _apply_settings,
    "start": lambda party, p, deps: engine.start_game(party, _str(p, "host_id"), deps=deps),
    "open": lambda party, p, deps: engine.open_gift(party, _str(p, "player_id"), _str(p, "gift_id"), deps=deps),
    "steal": lambda party, p, deps: engine.steal_gift(party, _str(p, "player_id"), _str(p, "gift_id"), deps=deps),
    "keep": lambda party, p, deps: engine.keep_gift(party, _str(p, "player_id"), deps=deps),
    "swap": lambda party, p, deps: engine.swap_gift(party, _str(p, "player_id"), _str(p, "gift_id"), deps=deps),
}


def create_party(*, store: PartyStore, host_name: str, deps: EngineDeps = DEFAULT_DEPS) -> ActionResult:
    party = engine.create_party(host_name, deps=deps)
    store.put(party)
    logger.info("party %s created by host %s", party.party_id, party.host_id)
    return ActionResult(party=party, view=project_for_client(party), player_id=party.host_id)


def get_party_view(*, store: PartyStore, party_id: str) -> ClientView:
    party = store.get(party_id)
    if party is None:
        raise ActionRejectedError(Rejected.not_found("Party not found"))
    return project_for_client(party)


def dispatch_action(
    *,
    store: PartyStore,
    party_id: str,
    action: ActionName | str,
    payload: dict[str, Any],
    deps: EngineDeps = DEFAULT_DEPS,
) -> ActionResult:
    """Entry point for every party mutation.

    Applies an action by:
    - acquiring the per-party lock
    - loading the party
    - running the engine operation
    - persisting the new record
    - projecting it for the client

    Raises `ActionRejectedError` when the engine rejects the move (nothing is
    written in that case) and `ValueError` for unknown actions.
    """

    handler = _HANDLERS.get(action)
    if handler is None:
        raise ValueError(f"Unknown action: {action}")

    with store.lock(party_id):
        party = store.get(party_id)
        if party is None:
            raise ActionRejectedError(Rejected.not_found("Party not found"))

        outcome = handler(party, payload, deps)
        if isinstance(outcome, Rejected):
            logger.info(
                "party %s: %s rejected (%s): %s",
                party_id,
                action,
                outcome.reason.value,
                outcome.message,
            )
            raise ActionRejectedError(outcome)

        store.put(outcome)

    logger.info("party %s: %s applied (state=%s)", party_id, action, outcome.state.value)

    player_id = outcome.players[-1].player_id if action == "join" else None
    gift_id = outcome.gifts[-1].gift_id if action == "gift" else None
    return ActionResult(party=outcome, view=project_for_client(outcome), player_id=player_id, gift_id=gift_id)
