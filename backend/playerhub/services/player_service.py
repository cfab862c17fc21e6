import logging

from playerhub.core.errors import StoreReadError
from playerhub.db.store import DocumentStore
from playerhub.services.roster_state import RosterState, now_ts

logger = logging.getLogger("playerhub.players")


class PlayerService:
    """Reads and edits player data wherever its current copy lives.

    A connected, promoted player is authoritative in the session table; the
    durable record catches up on the next play-time accrual or on disconnect.
    """

    def __init__(self, store: DocumentStore, state: RosterState) -> None:
        self._store = store
        self._state = state

    def get_player(self, license: str) -> dict | None:
        try:
            return self._store.find("players", license=license)
        except Exception as exc:
            raise StoreReadError(f"Failed to search for a player in the database: {exc}") from exc

    def resolve_authoritative(self, license: str) -> dict | None:
        with self._state.lock:
            session = self._state.get_session(license)
            if session is not None:
                return session.to_player_record()
        return self.get_player(license)

    def apply_to_authoritative(self, license: str, patch: dict) -> bool:
        with self._state.lock:
            session = self._state.get_session(license)
            if session is not None:
                for key, value in patch.items():
                    setattr(session, key, value)
                self._state.mark_dirty()
                return True
            updated = self._store.update_matching("players", {"license": license}, patch)
            if updated:
                self._state.mark_dirty()
            return updated > 0

    def set_player_note(self, license: str, note: str, author: str) -> bool:
        notes = {
            "text": note,
            "last_admin": author,
            "ts_last_edit": now_ts(),
        }
        try:
            return self.apply_to_authoritative(license, {"notes": notes})
        except Exception:
            logger.exception("Failed to save note for player %s", license)
            return False

    def get_player_list(self) -> list[dict]:
        with self._state.lock:
            return [session.to_summary() for session in self._state.sessions.values()]
