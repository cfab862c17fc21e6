import hmac

from fastapi import Depends, Header, HTTPException, Request, status

from playerhub.core.config import Settings, get_settings
from playerhub.realtime.heartbeat_loop import HeartbeatLoop
from playerhub.services.controller import PlayerController


def get_controller(request: Request) -> PlayerController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Player database not ready",
        )
    return controller


def get_heartbeat_loop(request: Request) -> HeartbeatLoop:
    heartbeat_loop = getattr(request.app.state, "heartbeat_loop", None)
    if heartbeat_loop is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Heartbeat loop not running",
        )
    return heartbeat_loop


def require_admin(
    x_admin_key: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    provided = (x_admin_key or "").strip()
    if not provided or not hmac.compare_digest(provided, settings.admin_api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin key required",
        )
