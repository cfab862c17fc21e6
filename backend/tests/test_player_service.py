import unittest

from playerhub.core.config import Settings
from playerhub.db.store import MemoryStore
from playerhub.services.player_service import PlayerService
from playerhub.services.roster_state import RosterState
from playerhub.services.session_service import SessionService

LICENSE_A_HEX = "0123456789abcdef0123456789abcdef01234567"
LICENSE_A = f"license:{LICENSE_A_HEX}"


def _stored_player() -> dict:
    return {
        "license": LICENSE_A_HEX,
        "name": "alpha",
        "play_time": 42,
        "ts_joined": 100,
        "ts_last_connection": 200,
        "notes": {"text": "", "last_admin": None, "ts_last_edit": None},
    }


class PlayerServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        self.state = RosterState()
        self.players = PlayerService(self.store, self.state)
        self.sessions = SessionService(Settings(), self.store, self.state)

    def test_note_for_offline_player_updates_record(self) -> None:
        self.store.insert("players", _stored_player())
        self.assertTrue(self.players.set_player_note(LICENSE_A_HEX, "good player", "admin"))
        self.assertTrue(self.state.is_dirty)
        record = self.players.get_player(LICENSE_A_HEX)
        assert record is not None
        self.assertEqual(record["notes"]["text"], "good player")
        self.assertEqual(record["notes"]["last_admin"], "admin")
        self.assertIsInstance(record["notes"]["ts_last_edit"], int)

    def test_note_for_connected_player_goes_to_session_then_disconnect_flush(self) -> None:
        self.store.insert("players", _stored_player())
        self.sessions.process_heartbeat(
            [{"id": 3, "name": "alpha", "identifiers": [LICENSE_A]}],
            now=1_000,
        )
        self.assertTrue(self.players.set_player_note(LICENSE_A_HEX, "live note", "mod"))

        record = self.players.get_player(LICENSE_A_HEX)
        assert record is not None
        self.assertEqual(record["notes"]["text"], "")
        authoritative = self.players.resolve_authoritative(LICENSE_A_HEX)
        assert authoritative is not None
        self.assertEqual(authoritative["notes"]["text"], "live note")

        self.sessions.process_heartbeat([], now=1_015)
        record = self.players.get_player(LICENSE_A_HEX)
        assert record is not None
        self.assertEqual(record["notes"]["text"], "live note")
        self.assertEqual(record["play_time"], 42)

    def test_note_for_unknown_player_fails(self) -> None:
        self.assertFalse(self.players.set_player_note(LICENSE_A_HEX, "who?", "admin"))
        self.assertFalse(self.state.is_dirty)
        self.assertIsNone(self.players.resolve_authoritative(LICENSE_A_HEX))

    def test_player_list_reflects_live_sessions(self) -> None:
        self.sessions.process_heartbeat(
            [{"id": 3, "name": "alpha", "identifiers": [LICENSE_A], "ping": 55}],
            now=1_000,
        )
        self.assertEqual(
            self.players.get_player_list(),
            [
                {
                    "license": LICENSE_A_HEX,
                    "id": 3,
                    "name": "alpha",
                    "ping": 55,
                    "identifiers": [LICENSE_A],
                }
            ],
        )


if __name__ == "__main__":
    unittest.main()
