from fastapi import APIRouter, Depends

from playerhub.api.deps import get_controller, get_heartbeat_loop
from playerhub.realtime.heartbeat_loop import HeartbeatLoop
from playerhub.services.controller import PlayerController

router = APIRouter()


@router.get("/health")
def health(
    controller: PlayerController = Depends(get_controller),
    heartbeat_loop: HeartbeatLoop = Depends(get_heartbeat_loop),
) -> dict:
    return {
        "status": "ok",
        "active_players": len(controller.state.sessions),
        "write_pending": controller.state.is_dirty,
        "loop_running": heartbeat_loop.running,
    }
