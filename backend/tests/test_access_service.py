from concurrent.futures import ThreadPoolExecutor
import threading
import time
import unittest
from unittest.mock import patch

from playerhub.core.config import Settings
from playerhub.core.errors import StoreReadError, ValidationError
from playerhub.db.store import MemoryStore
from playerhub.services.access_service import AccessService
from playerhub.services.code_service import generate_short_code
from playerhub.services.ledger_service import LedgerService
from playerhub.services.roster_state import RosterState

LICENSE_HEX = "0123456789abcdef0123456789abcdef01234567"
LICENSE_A = f"license:{LICENSE_HEX}"
DISCORD_A = "discord:272800190639898628"


def _make_access(
    check_ban: bool = True,
    check_whitelist: bool = False,
    **overrides,
) -> tuple[AccessService, LedgerService, MemoryStore, RosterState]:
    settings = Settings(check_ban=check_ban, check_whitelist=check_whitelist, **overrides)
    store = MemoryStore()
    state = RosterState()
    ledger = LedgerService(store, state)
    return AccessService(settings, store, state, ledger), ledger, store, state


class AccessServiceTests(unittest.TestCase):
    def test_checks_disabled_allows_everyone(self) -> None:
        access, _ledger, _store, _state = _make_access(check_ban=False, check_whitelist=False)
        decision = access.check_player_join(["garbage"], "anyone")
        self.assertTrue(decision.allow)
        self.assertEqual(decision.reason, "checks disabled")

    def test_active_ban_denies_with_action_id(self) -> None:
        access, ledger, _store, _state = _make_access(check_ban=True)
        ban_id = ledger.register_action([LICENSE_A], "ban", "admin", "cheating")
        decision = access.check_player_join([LICENSE_A], "x")
        self.assertFalse(decision.allow)
        self.assertIn(ban_id, decision.reason or "")

    def test_ban_matches_on_any_shared_identifier(self) -> None:
        access, ledger, _store, _state = _make_access(check_ban=True)
        ban_id = ledger.register_action([DISCORD_A], "ban", "admin", "alt account")
        decision = access.check_player_join([LICENSE_A, DISCORD_A, "ip:1.2.3.4"], "x")
        self.assertFalse(decision.allow)
        self.assertIn(ban_id, decision.reason or "")

    def test_expired_ban_and_warns_do_not_deny(self) -> None:
        access, ledger, _store, _state = _make_access(check_ban=True)
        ledger.register_action([LICENSE_A], "ban", "admin", "old", expiration=100)
        ledger.register_action([LICENSE_A], "warn", "admin", "language")
        decision = access.check_player_join([LICENSE_A], "x", now=1_000)
        self.assertTrue(decision.allow)
        self.assertIsNone(decision.reason)

    def test_ban_takes_precedence_over_whitelist(self) -> None:
        access, ledger, store, _state = _make_access(check_ban=True, check_whitelist=True)
        ledger.register_action([LICENSE_A], "whitelist", "admin", "approved")
        ban_id = ledger.register_action([LICENSE_A], "ban", "admin", "cheating")
        decision = access.check_player_join([LICENSE_A], "x")
        self.assertFalse(decision.allow)
        self.assertIn(ban_id, decision.reason or "")
        self.assertEqual(store.count("pending_wl"), 0)

    def test_whitelisted_player_is_allowed(self) -> None:
        access, ledger, _store, _state = _make_access(check_ban=True, check_whitelist=True)
        ledger.register_action([LICENSE_A], "whitelist", "admin", "approved")
        decision = access.check_player_join([LICENSE_A, DISCORD_A], "x")
        self.assertTrue(decision.allow)
        self.assertIsNone(decision.reason)

    def test_whitelist_miss_upserts_pending_request(self) -> None:
        access, _ledger, store, state = _make_access(
            check_ban=False,
            check_whitelist=True,
            whitelist_rejection_message="Not whitelisted. Request: <id>",
        )
        first = access.check_player_join([LICENSE_A], "first name", now=1_000)
        self.assertFalse(first.allow)
        self.assertTrue(state.is_dirty)

        pending = store.filter("pending_wl")
        self.assertEqual(len(pending), 1)
        request_id = pending[0]["id"]
        self.assertRegex(request_id, r"^R[2346789ABCDEFGHJKLMNPQRTUVWXYZ]{4}$")
        self.assertEqual(first.reason, f"Not whitelisted. Request: {request_id}")
        self.assertEqual(pending[0]["license"], LICENSE_HEX)
        self.assertEqual(pending[0]["ts_last_attempt"], 1_000)

        second = access.check_player_join([LICENSE_A], "second name", now=1_030)
        self.assertEqual(second.reason, f"Not whitelisted. Request: {request_id}")
        pending = store.filter("pending_wl")
        self.assertEqual(len(pending), 1)
        self.assertEqual(pending[0]["id"], request_id)
        self.assertEqual(pending[0]["name"], "second name")
        self.assertEqual(pending[0]["ts_last_attempt"], 1_030)

    def test_concurrent_attempts_share_one_pending_request(self) -> None:
        settings = Settings(check_ban=False, check_whitelist=True, whitelist_rejection_message="<id>")
        store = MemoryStore()
        state = RosterState()

        def slow_code(length: int) -> str:
            time.sleep(0.05)
            return generate_short_code(length)

        access = AccessService(settings, store, state, LedgerService(store, state), slow_code)
        barrier = threading.Barrier(4)

        def attempt(index: int) -> str | None:
            barrier.wait()
            return access.check_player_join([LICENSE_A], f"player {index}", now=1_000).reason

        with ThreadPoolExecutor(max_workers=4) as pool:
            reasons = list(pool.map(attempt, range(4)))

        pending = store.filter("pending_wl", license=LICENSE_HEX)
        self.assertEqual(len(pending), 1)
        self.assertEqual(set(reasons), {pending[0]["id"]})

    def test_whitelist_requires_license_identifier(self) -> None:
        access, _ledger, store, _state = _make_access(check_ban=False, check_whitelist=True)
        decision = access.check_player_join([DISCORD_A, "license:nothex"], "x")
        self.assertFalse(decision.allow)
        self.assertIn("license", decision.reason or "")
        self.assertEqual(store.count("pending_wl"), 0)

    def test_lookup_failure_fails_closed(self) -> None:
        access, ledger, _store, _state = _make_access(check_ban=True, check_whitelist=True)
        with patch.object(
            ledger,
            "get_registered_actions",
            side_effect=StoreReadError("database unavailable"),
        ):
            decision = access.check_player_join([LICENSE_A], "x")
        self.assertFalse(decision.allow)
        self.assertIn("database unavailable", decision.reason or "")

    def test_malformed_input_is_rejected(self) -> None:
        access, _ledger, _store, _state = _make_access(check_ban=True)
        with self.assertRaises(ValidationError):
            access.check_player_join([LICENSE_A], None)  # type: ignore[arg-type]
        with self.assertRaises(ValidationError):
            access.check_player_join(LICENSE_A, "x")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
