from fastapi import APIRouter, Depends, HTTPException, Query, status

from playerhub.api.deps import get_controller, require_admin
from playerhub.core.errors import (
    NoIdentifiers,
    NotImplementedYet,
    StoreReadError,
    StoreWriteError,
    UnknownSession,
    ValidationError,
)
from playerhub.schemas.actions import (
    ActionCreated,
    ActionCreateRequest,
    ActionRead,
    ActionRevokeRequest,
)
from playerhub.services.controller import PlayerController
from playerhub.services.ledger_service import ACTION_TYPES, ActionQuery

router = APIRouter()


@router.get("", response_model=list[ActionRead])
def search_actions(
    identifier: list[str] = Query(default=[]),
    action_type: str | None = Query(default=None, alias="type"),
    active_only: bool = Query(default=False),
    author: str | None = Query(default=None, max_length=60),
    controller: PlayerController = Depends(get_controller),
) -> list[ActionRead]:
    if not identifier:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="identifier is required")
    if action_type is not None and action_type not in ACTION_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action type")
    query = ActionQuery(
        identifiers=identifier,
        action_types=(action_type,) if action_type else (),
        active_only=active_only,
        author=author,
    )
    try:
        actions = controller.ledger.get_registered_actions(query)
    except StoreReadError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [ActionRead(**action) for action in actions]


@router.get("/{action_id}", response_model=ActionRead)
def get_action(
    action_id: str,
    controller: PlayerController = Depends(get_controller),
) -> ActionRead:
    try:
        action = controller.ledger.get_action(action_id)
    except StoreReadError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if not action:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Action not found")
    return ActionRead(**action)


@router.post("", response_model=ActionCreated, status_code=status.HTTP_201_CREATED)
def register_action(
    payload: ActionCreateRequest,
    _: None = Depends(require_admin),
    controller: PlayerController = Depends(get_controller),
) -> ActionCreated:
    if (payload.identifiers is None) == (payload.player_id is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Send either identifiers or player_id",
        )
    reference = payload.identifiers if payload.identifiers is not None else payload.player_id
    try:
        action_id = controller.ledger.register_action(
            reference,
            payload.type,
            payload.author,
            payload.reason,
            payload.expiration,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (UnknownSession, NoIdentifiers) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreWriteError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return ActionCreated(id=action_id)


@router.post("/{action_id}/revoke", response_model=ActionCreated)
def revoke_action(
    action_id: str,
    payload: ActionRevokeRequest,
    _: None = Depends(require_admin),
    controller: PlayerController = Depends(get_controller),
) -> ActionCreated:
    try:
        revoked_id = controller.ledger.revoke_action(action_id, payload.author)
    except NotImplementedYet as exc:
        raise HTTPException(status_code=status.HTTP_501_NOT_IMPLEMENTED, detail=str(exc)) from exc
    return ActionCreated(id=revoked_id)
