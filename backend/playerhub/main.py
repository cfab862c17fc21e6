from fastapi import FastAPI

from playerhub.api.routes import router as api_router
from playerhub.core.config import Settings, get_settings
from playerhub.core.logging_setup import configure_logging
from playerhub.realtime.heartbeat_loop import HeartbeatLoop
from playerhub.services.controller import PlayerController, build_controller


def create_app(
    settings: Settings | None = None,
    controller: PlayerController | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    api_app = FastAPI(title=settings.app_name, debug=settings.debug)
    api_app.include_router(api_router, prefix=settings.api_prefix)

    @api_app.on_event("startup")
    async def on_startup() -> None:
        configure_logging(settings)
        active_controller = controller or build_controller(settings)
        heartbeat_loop = HeartbeatLoop(
            active_controller,
            flush_interval_seconds=settings.flush_interval_seconds,
            persist_timeout_seconds=settings.persist_timeout_seconds,
            queue_size=settings.heartbeat_queue_size,
        )
        heartbeat_loop.start()
        api_app.state.controller = active_controller
        api_app.state.heartbeat_loop = heartbeat_loop

    @api_app.on_event("shutdown")
    async def on_shutdown() -> None:
        heartbeat_loop = getattr(api_app.state, "heartbeat_loop", None)
        if heartbeat_loop is not None:
            await heartbeat_loop.stop()

    return api_app


app = create_app()
