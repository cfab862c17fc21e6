from fastapi import APIRouter

from playerhub.api.routes.access import router as access_router
from playerhub.api.routes.actions import router as actions_router
from playerhub.api.routes.health import router as health_router
from playerhub.api.routes.heartbeat import router as heartbeat_router
from playerhub.api.routes.players import router as players_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(heartbeat_router, prefix="/heartbeat", tags=["heartbeat"])
router.include_router(players_router, prefix="/players", tags=["players"])
router.include_router(access_router, prefix="/access", tags=["access"])
router.include_router(actions_router, prefix="/actions", tags=["actions"])
