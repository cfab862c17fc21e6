from fastapi import APIRouter, Depends, HTTPException, status

from playerhub.api.deps import get_controller
from playerhub.core.errors import ValidationError
from playerhub.schemas.access import AccessCheckRead, AccessCheckRequest
from playerhub.services.controller import PlayerController

router = APIRouter()


@router.post("/check", response_model=AccessCheckRead)
def check_player_join(
    payload: AccessCheckRequest,
    controller: PlayerController = Depends(get_controller),
) -> AccessCheckRead:
    try:
        decision = controller.access.check_player_join(payload.identifiers, payload.name)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccessCheckRead(allow=decision.allow, reason=decision.reason)
