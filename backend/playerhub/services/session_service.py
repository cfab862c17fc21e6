from dataclasses import dataclass
import logging

from pydantic import ValidationError as PydanticValidationError

from playerhub.core.config import Settings
from playerhub.core.logging_setup import log_failure
from playerhub.db.store import DocumentStore
from playerhub.schemas.heartbeat import HeartbeatPlayer
from playerhub.services.identifier_service import extract_license, filter_valid
from playerhub.services.redis_client import PlayerListMirror
from playerhub.services.roster_state import PlayerSession, RosterState, empty_notes, now_ts

logger = logging.getLogger("playerhub.sessions")


@dataclass
class HeartbeatReport:
    received: int = 0
    invalid: int = 0
    duplicated: int = 0
    joined: int = 0
    left: int = 0
    active: int = 0


def _parse_heartbeat_entry(raw: object) -> tuple[str, HeartbeatPlayer] | None:
    if not isinstance(raw, dict) or "license" in raw:
        return None
    try:
        player = HeartbeatPlayer.model_validate(raw)
    except PydanticValidationError:
        return None
    license = extract_license(player.identifiers)
    if license is None:
        return None
    return license, player


class SessionService:
    """Keeps the live session table in line with the heartbeat player list."""

    def __init__(
        self,
        settings: Settings,
        store: DocumentStore,
        state: RosterState,
        mirror: PlayerListMirror | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._state = state
        self._mirror = mirror

    def _dedupe_snapshot(
        self,
        players: list,
        report: HeartbeatReport,
    ) -> dict[str, HeartbeatPlayer]:
        heartbeat_players: dict[str, HeartbeatPlayer] = {}
        for raw in players:
            parsed = _parse_heartbeat_entry(raw)
            if parsed is None:
                report.invalid += 1
                continue
            license, player = parsed
            if license in heartbeat_players:
                report.duplicated += 1
                continue
            heartbeat_players[license] = player
        return heartbeat_players

    def _new_session(self, license: str, player: HeartbeatPlayer, ts: int) -> PlayerSession:
        identifiers = filter_valid(player.identifiers)
        db_player = self._store.find("players", license=license)
        if db_player:
            return PlayerSession(
                license=license,
                id=player.id,
                name=player.name,
                identifiers=identifiers,
                ping=player.ping,
                ts_connected=ts,
                ts_joined=db_player.get("ts_joined", ts),
                play_time=int(db_player.get("play_time", 0)),
                notes=db_player.get("notes") or empty_notes(),
                is_tmp=False,
                ts_last_accrual=ts,
            )
        return PlayerSession(
            license=license,
            id=player.id,
            name=player.name,
            identifiers=identifiers,
            ping=player.ping,
            ts_connected=ts,
            ts_joined=ts,
            is_tmp=True,
        )

    def _commit_disconnected(self, disconnected: list[PlayerSession]) -> None:
        # Notes are the only field that can change between play-time saves.
        for session in disconnected:
            if session.is_tmp:
                continue
            try:
                self._store.update_matching(
                    "players",
                    {"license": session.license},
                    {"notes": dict(session.notes)},
                )
            except Exception:
                logger.exception(
                    "Failed to save the disconnected player %s (%s) to the database",
                    session.name,
                    session.license,
                )

    def process_heartbeat(self, players: object, now: int | None = None) -> HeartbeatReport | None:
        if not isinstance(players, list):
            logger.error("HeartBeat playerlist expected array, got %s", type(players).__name__)
            return None

        ts = now if now is not None else now_ts()
        report = HeartbeatReport(received=len(players))
        try:
            heartbeat_players = self._dedupe_snapshot(players, report)
            if report.invalid:
                logger.warning(
                    "HeartBeat playerlist contained %s invalid players that were removed.",
                    report.invalid,
                )
            if report.duplicated:
                logger.warning(
                    "HeartBeat playerlist contained %s duplicated players that were removed.",
                    report.duplicated,
                )

            with self._state.lock:
                current = self._state.sessions
                new_sessions: dict[str, PlayerSession] = {}
                disconnected: list[PlayerSession] = []
                for license, session in current.items():
                    heartbeat_player = heartbeat_players.get(license)
                    if heartbeat_player is None:
                        disconnected.append(session)
                        continue
                    new_sessions[license] = session

                joined: dict[str, PlayerSession] = {}
                for license, player in heartbeat_players.items():
                    if license in new_sessions:
                        continue
                    joined[license] = self._new_session(license, player, ts)

                # Nothing above mutates live sessions, so a failure leaves the table intact.
                for license, session in new_sessions.items():
                    heartbeat_player = heartbeat_players[license]
                    session.id = heartbeat_player.id
                    session.ping = heartbeat_player.ping
                new_sessions.update(joined)
                self._state.sessions = new_sessions

                if disconnected:
                    self._state.mark_dirty()
                    self._commit_disconnected(disconnected)

                report.joined = len(joined)
                report.left = len(disconnected)
                report.active = len(new_sessions)
        except Exception:
            log_failure(logger, "Failed to process HeartBeat", verbose=self._settings.verbose)
            return None

        if self._mirror is not None:
            self._mirror.publish([session.to_summary() for session in new_sessions.values()])
        return report
