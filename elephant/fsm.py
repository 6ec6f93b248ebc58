from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from elephant.api.models import Party, PartyState


class PartyFSM(StateMachine):
    """FSM wrapper around a Party record.

    - states: waiting -> registering -> playing -> finished
    - a game may also start straight from waiting (gift registration is not
      gated on the registering state)
    - nothing leads backwards; finished is final

    The engine mutates everything else on the record; the FSM only decides
    whether the `state` field may move.
    """

    waiting = State(PartyState.waiting.value, value=PartyState.waiting.value, initial=True)
    registering = State(PartyState.registering.value, value=PartyState.registering.value)
    playing = State(PartyState.playing.value, value=PartyState.playing.value)
    finished = State(PartyState.finished.value, value=PartyState.finished.value, final=True)

    begin_registration = waiting.to(registering)
    start_game = waiting.to(playing) | registering.to(playing)
    end_game = playing.to(finished)

    def __init__(self, party: Party):
        self.party = party
        super().__init__(start_value=party.state.value)

    def sync_state_to_model(self) -> None:
        self.party.state = PartyState(str(self.current_state.value))

    def try_send(self, event: str) -> bool:
        """Fire `event` and copy the new state onto the party.

        Returns False (leaving the party untouched) when the transition is not
        allowed from the current state.
        """

        try:
            self.send(event)
        except TransitionNotAllowed:
            return False
        self.sync_state_to_model()
        return True


def can_transition(party: Party, event: str) -> bool:
    """Dry-run check against a throwaway FSM; never touches `party`."""

    fsm = PartyFSM(party.model_copy())
    try:
        fsm.send(event)
    except TransitionNotAllowed:
        return False
    return True
