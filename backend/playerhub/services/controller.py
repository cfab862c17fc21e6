import logging

from playerhub.core.config import Settings
from playerhub.core.errors import StoreReadError
from playerhub.db.sql_store import SqlDocumentStore
from playerhub.db.store import DocumentStore, JsonFileStore
from playerhub.services.access_service import AccessService
from playerhub.services.code_service import CodeGenerator, generate_short_code
from playerhub.services.ledger_service import LedgerService
from playerhub.services.player_service import PlayerService
from playerhub.services.playtime_service import PlaytimeService
from playerhub.services.redis_client import PlayerListMirror, get_redis_client
from playerhub.services.roster_state import RosterState
from playerhub.services.session_service import SessionService

logger = logging.getLogger("playerhub")

STORE_BACKENDS = ("json", "sql")


class PlayerController:
    """Central player database: live sessions, play time, and access control."""

    def __init__(
        self,
        settings: Settings,
        store: DocumentStore,
        mirror: PlayerListMirror | None = None,
        code_generator: CodeGenerator = generate_short_code,
    ) -> None:
        self.settings = settings
        self.store = store
        self.state = RosterState()
        self.ledger = LedgerService(store, self.state, code_generator)
        self.access = AccessService(settings, store, self.state, self.ledger, code_generator)
        self.sessions = SessionService(settings, store, self.state, mirror)
        self.playtime = PlaytimeService(settings, store, self.state)
        self.players = PlayerService(store, self.state)

    def setup_database(self) -> None:
        try:
            self.store.load()
        except StoreReadError:
            logger.error("Failed to load players database")
            raise
        if self.settings.wipe_pending_wl_on_start:
            self.store.clear("pending_wl")
            self.state.mark_dirty()
        logger.info(
            "Players database ready (%s players, %s actions)",
            self.store.count("players"),
            self.store.count("actions"),
        )


def build_store(settings: Settings) -> DocumentStore:
    backend = settings.store_backend.strip().lower()
    if backend == "json":
        return JsonFileStore(settings.store_path)
    if backend == "sql":
        return SqlDocumentStore(settings.database_url)
    raise ValueError(f"Unsupported store backend '{settings.store_backend}'")


def build_controller(settings: Settings) -> PlayerController:
    mirror = None
    if settings.player_list_mirror_enabled:
        mirror = PlayerListMirror(
            get_redis_client(settings.redis_url, settings.redis_socket_timeout_seconds)
        )
    controller = PlayerController(settings, build_store(settings), mirror=mirror)
    controller.setup_database()
    return controller
