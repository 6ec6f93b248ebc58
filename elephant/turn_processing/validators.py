from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from elephant.api.models import FinalRoundType, Party, PartyState
from elephant.core.outcome import Rejected
from elephant.fsm import can_transition


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    party_id: str
    action: str
    player_id: str | None = None
    gift_id: str | None = None


class TurnValidator(ABC):
    """A small, composable validation unit for an incoming action.

    Returns a `Rejected` describing the first problem found, or None.
    """

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class StateValidator(TurnValidator):
    """Validates the party state for a given action."""

    allowed_states: frozenset[PartyState]

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if party.state not in self.allowed_states:
            allowed = ",".join(sorted(s.value for s in self.allowed_states))
            return Rejected.invalid_state(
                f"Action '{ctx.action}' not allowed in state '{party.state.value}' (allowed: {allowed})"
            )
        return None


@dataclass(frozen=True, slots=True)
class TransitionValidator(TurnValidator):
    """Ask the FSM whether `event` may fire from the current state."""

    event: str

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if not can_transition(party, self.event):
            return Rejected.invalid_state(f"Action '{ctx.action}' not allowed in state '{party.state.value}'")
        return None


@dataclass(frozen=True, slots=True)
class HostValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if ctx.player_id is None or ctx.player_id != party.host_id:
            return Rejected.unauthorized(f"Only the host can perform '{ctx.action}'")
        return None


@dataclass(frozen=True, slots=True)
class PlayerExistsValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if party.find_player(ctx.player_id) is None:
            return Rejected.not_found("Player not found")
        return None


@dataclass(frozen=True, slots=True)
class CurrentTurnValidator(TurnValidator):
    """Only the current player may act."""

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if party.current_player_id is None or ctx.player_id != party.current_player_id:
            return Rejected.unauthorized("Not your turn")
        return None


@dataclass(frozen=True, slots=True)
class FinalRoundValidator(TurnValidator):
    """Require the final round, optionally of specific variants."""

    variants: frozenset[FinalRoundType] = frozenset()

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if not party.in_final_round:
            return Rejected.invalid_state(f"Action '{ctx.action}' is only allowed in the final round")
        if self.variants and party.final_round_type not in self.variants:
            return Rejected.invalid_state(
                f"Action '{ctx.action}' not allowed in a '{party.final_round_type.value}' final round"
            )
        return None


@dataclass(frozen=True, slots=True)
class GiftExistsValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if party.find_gift(ctx.gift_id) is None:
            return Rejected.not_found("Gift not found")
        return None


@dataclass(frozen=True, slots=True)
class GiftOpenedValidator(TurnValidator):
    """Require the target gift to be opened (or still wrapped)."""

    opened: bool

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        gift = party.find_gift(ctx.gift_id)
        if gift is None:
            return Rejected.not_found("Gift not found")
        if gift.opened and not self.opened:
            return Rejected.rule_violation("Gift is already opened")
        if not gift.opened and self.opened:
            return Rejected.rule_violation("Gift has not been opened yet")
        return None


@dataclass(frozen=True, slots=True)
class NotHolderValidator(TurnValidator):
    """A player cannot take a gift they already hold."""

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        gift = party.find_gift(ctx.gift_id)
        if gift is not None and gift.current_holder == ctx.player_id:
            return Rejected.rule_violation("You already hold this gift")
        return None


@dataclass(frozen=True, slots=True)
class StealBackValidator(TurnValidator):
    """A gift that just changed hands cannot be taken again right away."""

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if ctx.gift_id is not None and ctx.gift_id == party.last_stolen_gift_id:
            return Rejected.rule_violation("This gift was just stolen and cannot be stolen back immediately")
        return None


@dataclass(frozen=True, slots=True)
class StealLimitValidator(TurnValidator):
    """Reject gifts that reached `max_steals`.

    With `honor_swap_override`, the party's `final_swap_allow_locked` setting
    lifts the lock.
    """

    honor_swap_override: bool = False

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        if self.honor_swap_override and party.final_swap_allow_locked:
            return None
        count = party.steal_count.get(ctx.gift_id or "", 0)
        if count >= party.max_steals:
            return Rejected.rule_violation(f"Gift is locked (stolen {count}/{party.max_steals} times)")
        return None


@dataclass(frozen=True, slots=True)
class NoRegisteredGiftValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        player = party.find_player(ctx.player_id)
        if player is not None and player.gift_id is not None:
            return Rejected.rule_violation("Player already registered a gift")
        return None


@dataclass(frozen=True, slots=True)
class AllGiftsRegisteredValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        missing = [p.name for p in party.players if p.gift_id is None]
        if not party.players or missing:
            return Rejected.rule_violation(f"Every player must register a gift first (missing: {', '.join(missing)})")
        return None


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[TurnValidator, ...]

    def validate(self, *, ctx: ValidationContext, party: Party) -> Rejected | None:
        for v in self.validators:
            rejected = v.validate(ctx=ctx, party=party)
            if rejected is not None:
                return rejected
        return None


_PLAYING = frozenset({PartyState.playing})

# Order matters: the first failing validator names the rejection reason.
DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "join": ValidatorPipeline(
        validators=(StateValidator(allowed_states=frozenset({PartyState.waiting})),)
    ),
    "register": ValidatorPipeline(
        validators=(
            HostValidator(),
            TransitionValidator(event="begin_registration"),
        )
    ),
    "gift": ValidatorPipeline(
        validators=(
            PlayerExistsValidator(),
            NoRegisteredGiftValidator(),
        )
    ),
    "settings": ValidatorPipeline(
        validators=(
            HostValidator(),
            StateValidator(allowed_states=frozenset({PartyState.waiting})),
        )
    ),
    "start": ValidatorPipeline(
        validators=(
            HostValidator(),
            TransitionValidator(event="start_game"),
            AllGiftsRegisteredValidator(),
        )
    ),
    "open": ValidatorPipeline(
        validators=(
            StateValidator(allowed_states=_PLAYING),
            CurrentTurnValidator(),
            GiftExistsValidator(),
            GiftOpenedValidator(opened=False),
        )
    ),
    "steal": ValidatorPipeline(
        validators=(
            StateValidator(allowed_states=_PLAYING),
            CurrentTurnValidator(),
            GiftExistsValidator(),
            GiftOpenedValidator(opened=True),
            NotHolderValidator(),
            StealBackValidator(),
            StealLimitValidator(),
        )
    ),
    "keep": ValidatorPipeline(
        validators=(
            StateValidator(allowed_states=_PLAYING),
            FinalRoundValidator(),
            CurrentTurnValidator(),
        )
    ),
    "swap": ValidatorPipeline(
        validators=(
            StateValidator(allowed_states=_PLAYING),
            FinalRoundValidator(variants=frozenset({FinalRoundType.swap})),
            CurrentTurnValidator(),
            GiftExistsValidator(),
            GiftOpenedValidator(opened=True),
            NotHolderValidator(),
            StealLimitValidator(honor_swap_override=True),
        )
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
