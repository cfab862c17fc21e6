from fastapi import APIRouter, Depends, HTTPException, status

from playerhub.api.deps import get_controller, require_admin
from playerhub.core.errors import StoreReadError
from playerhub.schemas.players import ActivePlayerRead, PlayerNoteUpdateRequest, PlayerRead
from playerhub.services.controller import PlayerController

router = APIRouter()


@router.get("", response_model=list[ActivePlayerRead])
def list_active_players(
    controller: PlayerController = Depends(get_controller),
) -> list[ActivePlayerRead]:
    return [ActivePlayerRead(**player) for player in controller.players.get_player_list()]


@router.get("/{license}", response_model=PlayerRead)
def get_player(
    license: str,
    controller: PlayerController = Depends(get_controller),
) -> PlayerRead:
    try:
        player = controller.players.resolve_authoritative(license)
    except StoreReadError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if not player:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not found")
    return PlayerRead(**player)


@router.put("/{license}/note", status_code=status.HTTP_204_NO_CONTENT)
def set_player_note(
    license: str,
    payload: PlayerNoteUpdateRequest,
    _: None = Depends(require_admin),
    controller: PlayerController = Depends(get_controller),
) -> None:
    saved = controller.players.set_player_note(license, payload.note, payload.author.strip())
    if not saved:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not found")
