from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from elephant.actions import ACTION_NAMES, ActionRejectedError, ActionResult, create_party, dispatch_action, get_party_view
from elephant.api.deps import get_engine_deps, get_store
from elephant.api.models import (
    GiftActionRequest,
    GiftRegisterRequest,
    HostRequest,
    JoinRequest,
    KeepRequest,
    PartyCreateRequest,
    SettingsRequest,
)
from elephant.core.outcome import RejectionReason
from elephant.engine import EngineDeps
from elephant.lock import PartyBusyError
from elephant.party_store import PartyStore
from elephant.projection import ClientView

router = APIRouter()


_STATUS_FOR_REASON: dict[RejectionReason, int] = {
    RejectionReason.not_found: status.HTTP_404_NOT_FOUND,
    RejectionReason.unauthorized: status.HTTP_403_FORBIDDEN,
    RejectionReason.invalid_state: status.HTTP_409_CONFLICT,
    RejectionReason.rule_violation: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


class PartyCreatedResponse(BaseModel):
    party_id: str
    host_id: str
    party: ClientView


class JoinResponse(BaseModel):
    player_id: str
    party: ClientView


class GiftRegisteredResponse(BaseModel):
    gift_id: str
    party: ClientView


class ActionResponse(BaseModel):
    party: ClientView
    # Set for "join" and "gift" only.
    player_id: str | None = None
    gift_id: str | None = None


class LastUpdatedResponse(BaseModel):
    party_id: str
    last_updated: datetime


def _run(
    *,
    store: PartyStore,
    deps: EngineDeps,
    party_id: str,
    action: str,
    payload: dict[str, Any],
) -> ActionResult:
    try:
        return dispatch_action(store=store, party_id=party_id, action=action, payload=payload, deps=deps)
    except ActionRejectedError as e:
        raise HTTPException(status_code=_STATUS_FOR_REASON[e.rejected.reason], detail=str(e)) from e
    except PartyBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/party", response_model=PartyCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_party_route(
    payload: PartyCreateRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> PartyCreatedResponse:
    result = create_party(store=store, host_name=payload.host_name, deps=deps)
    return PartyCreatedResponse(party_id=result.party.party_id, host_id=result.party.host_id, party=result.view)


@router.get("/party/{party_id}", response_model=ClientView)
def get_party_route(party_id: str, store: PartyStore = Depends(get_store)) -> ClientView:
    try:
        return get_party_view(store=store, party_id=party_id)
    except ActionRejectedError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/party/{party_id}/last_updated", response_model=LastUpdatedResponse)
def last_updated_route(party_id: str, store: PartyStore = Depends(get_store)) -> LastUpdatedResponse:
    """Cheap probe for polling clients: refetch the party only when this changes."""

    party = store.get(party_id)
    if party is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Party not found")
    return LastUpdatedResponse(party_id=party.party_id, last_updated=party.last_updated)


@router.post("/party/{party_id}/join", response_model=JoinResponse)
def join_route(
    party_id: str,
    payload: JoinRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> JoinResponse:
    result = _run(store=store, deps=deps, party_id=party_id, action="join", payload=payload.model_dump())
    if result.player_id is None:
        raise RuntimeError("join did not report the new player id")
    return JoinResponse(player_id=result.player_id, party=result.view)


@router.post("/party/{party_id}/register", response_model=ClientView)
def begin_registration_route(
    party_id: str,
    payload: HostRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ClientView:
    return _run(store=store, deps=deps, party_id=party_id, action="register", payload=payload.model_dump()).view


@router.post("/party/{party_id}/gift", response_model=GiftRegisteredResponse)
def register_gift_route(
    party_id: str,
    payload: GiftRegisterRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> GiftRegisteredResponse:
    result = _run(store=store, deps=deps, party_id=party_id, action="gift", payload=payload.model_dump())
    if result.gift_id is None:
        raise RuntimeError("gift registration did not report the new gift id")
    return GiftRegisteredResponse(gift_id=result.gift_id, party=result.view)


@router.post("/party/{party_id}/settings", response_model=ClientView)
def settings_route(
    party_id: str,
    payload: SettingsRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ClientView:
    # Only forward fields the client actually sent.
    body = payload.model_dump(exclude_unset=True)
    return _run(store=store, deps=deps, party_id=party_id, action="settings", payload=body).view


@router.post("/party/{party_id}/start", response_model=ClientView)
def start_route(
    party_id: str,
    payload: HostRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ClientView:
    return _run(store=store, deps=deps, party_id=party_id, action="start", payload=payload.model_dump()).view


@router.post("/party/{party_id}/open", response_model=ClientView)
def open_route(
    party_id: str,
    payload: GiftActionRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ClientView:
    return _run(store=store, deps=deps, party_id=party_id, action="open", payload=payload.model_dump()).view


@router.post("/party/{party_id}/steal", response_model=ClientView)
def steal_route(
    party_id: str,
    payload: GiftActionRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ClientView:
    return _run(store=store, deps=deps, party_id=party_id, action="steal", payload=payload.model_dump()).view


@router.post("/party/{party_id}/keep", response_model=ClientView)
def keep_route(
    party_id: str,
    payload: KeepRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ClientView:
    return _run(store=store, deps=deps, party_id=party_id, action="keep", payload=payload.model_dump()).view


@router.post("/party/{party_id}/swap", response_model=ClientView)
def swap_route(
    party_id: str,
    payload: GiftActionRequest,
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ClientView:
    return _run(store=store, deps=deps, party_id=party_id, action="swap", payload=payload.model_dump()).view


@router.post("/party/{party_id}/actions/{action}", response_model=ActionResponse)
def generic_action_route(
    party_id: str,
    action: str,
    body: dict[str, Any],
    store: PartyStore = Depends(get_store),
    deps: EngineDeps = Depends(get_engine_deps),
) -> ActionResponse:
    if action not in ACTION_NAMES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown action: {action}")
    result = _run(store=store, deps=deps, party_id=party_id, action=action, payload=body)
    return ActionResponse(party=result.view, player_id=result.player_id, gift_id=result.gift_id)
