import logging

from playerhub.core.config import Settings
from playerhub.db.store import DocumentStore
from playerhub.services.roster_state import PlayerSession, RosterState, empty_notes, now_ts

logger = logging.getLogger("playerhub.playtime")

NOSAVE_LICENSE = "3333333333333333333333deadbeef0000nosave"
ACCRUAL_INTERVAL_SECONDS = 60


class PlaytimeService:
    def __init__(self, settings: Settings, store: DocumentStore, state: RosterState) -> None:
        self._settings = settings
        self._store = store
        self._state = state

    def _promote(self, session: PlayerSession, session_time: int, ts: int) -> None:
        record = session.to_player_record()
        record["play_time"] = session_time // 60
        record["notes"] = empty_notes()
        if self._store.find("players", license=session.license) is None:
            self._store.insert("players", record)
        else:
            self._store.update_matching("players", {"license": session.license}, record)
        session.is_tmp = False
        session.notes = empty_notes()
        session.play_time = record["play_time"]
        session.ts_last_accrual = ts
        logger.info("Adding '%s' to players database.", session.name)

    def _accrue(self, session: PlayerSession, ts: int) -> None:
        patch = {
            "name": session.name,
            "play_time": session.play_time + 1,
            "notes": dict(session.notes),
            "ts_last_connection": session.ts_connected,
        }
        updated = self._store.update_matching("players", {"license": session.license}, patch)
        if not updated:
            record = session.to_player_record()
            record.update(patch)
            self._store.insert("players", record)
        session.play_time = patch["play_time"]
        session.ts_last_accrual = ts

    def process_active(self, now: int | None = None) -> int:
        """Promotes sessions past the minimum session time and accrues play time.

        Returns how many player records were written.
        """
        ts = now if now is not None else now_ts()
        min_session_time = max(0, int(self._settings.min_session_time_seconds))
        written = 0
        with self._state.lock:
            for session in list(self._state.sessions.values()):
                if session.license == NOSAVE_LICENSE:
                    continue
                try:
                    session_time = ts - session.ts_connected
                    if session.is_tmp:
                        if session_time < min_session_time:
                            continue
                        self._promote(session, session_time, ts)
                    else:
                        last_accrual = session.ts_last_accrual or session.ts_connected
                        if ts - last_accrual < ACCRUAL_INTERVAL_SECONDS:
                            continue
                        self._accrue(session, ts)
                    written += 1
                except Exception:
                    logger.exception("Failed to process active player %s", session.license)
            if written:
                self._state.mark_dirty()
        return written
