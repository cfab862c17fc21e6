from dataclasses import dataclass, field
from threading import RLock
import time


def now_ts() -> int:
    return int(time.time())


def empty_notes() -> dict:
    return {"text": "", "last_admin": None, "ts_last_edit": None}


@dataclass
class PlayerSession:
    license: str
    id: int
    name: str
    identifiers: list[str]
    ts_connected: int
    ts_joined: int
    play_time: int = 0
    notes: dict = field(default_factory=empty_notes)
    ping: int | None = None
    is_tmp: bool = True
    ts_last_accrual: int | None = None

    def to_player_record(self) -> dict:
        return {
            "license": self.license,
            "name": self.name,
            "play_time": self.play_time,
            "ts_joined": self.ts_joined,
            "ts_last_connection": self.ts_connected,
            "notes": dict(self.notes),
        }

    def to_summary(self) -> dict:
        return {
            "license": self.license,
            "id": self.id,
            "name": self.name,
            "ping": self.ping,
            "identifiers": list(self.identifiers),
        }


class RosterState:
    """Live session table plus the dirty marker shared by every writer.

    The dirty marker is a generation counter: a flush records the generation
    it saw and only clears the flag if nothing was written in the meantime.
    """

    def __init__(self) -> None:
        self.sessions: dict[str, PlayerSession] = {}
        self.lock = RLock()
        self._dirty_generation = 0
        self._flushed_generation = 0

    def mark_dirty(self) -> None:
        with self.lock:
            self._dirty_generation += 1

    @property
    def is_dirty(self) -> bool:
        with self.lock:
            return self._dirty_generation != self._flushed_generation

    def dirty_marker(self) -> int:
        with self.lock:
            return self._dirty_generation

    def clear_dirty(self, marker: int) -> bool:
        with self.lock:
            if marker > self._flushed_generation:
                self._flushed_generation = marker
            return self._dirty_generation == self._flushed_generation

    def get_session(self, license: str) -> PlayerSession | None:
        with self.lock:
            return self.sessions.get(license)

    def find_session_by_id(self, session_id: int) -> PlayerSession | None:
        with self.lock:
            return next(
                (session for session in self.sessions.values() if session.id == session_id),
                None,
            )
