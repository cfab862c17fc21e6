from fastapi import APIRouter, Depends, status

from playerhub.api.deps import get_heartbeat_loop
from playerhub.realtime.heartbeat_loop import HeartbeatLoop
from playerhub.schemas.heartbeat import HeartbeatAccepted, HeartbeatSubmitRequest

router = APIRouter()


@router.post("", response_model=HeartbeatAccepted, status_code=status.HTTP_202_ACCEPTED)
async def submit_heartbeat(
    payload: HeartbeatSubmitRequest,
    heartbeat_loop: HeartbeatLoop = Depends(get_heartbeat_loop),
) -> HeartbeatAccepted:
    queued = heartbeat_loop.submit(payload.players)
    return HeartbeatAccepted(queued=queued, queue_size=heartbeat_loop.queue_size)
