from dataclasses import dataclass
import logging

from playerhub.core.config import Settings
from playerhub.core.errors import StoreWriteError, ValidationError
from playerhub.core.logging_setup import log_failure
from playerhub.db.store import DocumentStore
from playerhub.services.code_service import CodeGenerator, generate_short_code
from playerhub.services.identifier_service import filter_valid, find_primary_license
from playerhub.services.ledger_service import ActionQuery, LedgerService
from playerhub.services.roster_state import RosterState, now_ts

logger = logging.getLogger("playerhub.access")

PENDING_ID_PLACEHOLDER = "<id>"
PENDING_ID_PREFIX = "R"
PENDING_ID_LENGTH = 4
MAX_CODE_GENERATION_ATTEMPTS = 40


@dataclass
class AccessDecision:
    allow: bool
    reason: str | None


class AccessService:
    def __init__(
        self,
        settings: Settings,
        store: DocumentStore,
        state: RosterState,
        ledger: LedgerService,
        code_generator: CodeGenerator = generate_short_code,
    ) -> None:
        self._settings = settings
        self._store = store
        self._state = state
        self._ledger = ledger
        self._generate_code = code_generator

    def _new_pending_id(self) -> str:
        for _ in range(MAX_CODE_GENERATION_ATTEMPTS):
            candidate = PENDING_ID_PREFIX + self._generate_code(PENDING_ID_LENGTH)
            if self._store.find("pending_wl", id=candidate) is None:
                return candidate
        raise StoreWriteError("Unable to generate unique whitelist request id")

    def _upsert_pending_request(self, license: str, player_name: str, ts: int) -> str:
        pending = self._store.upsert(
            "pending_wl",
            {"license": license},
            {"name": player_name, "ts_last_attempt": ts},
            lambda: {"id": self._new_pending_id()},
        )
        self._state.mark_dirty()
        return pending["id"]

    def check_player_join(
        self,
        identifiers: list,
        player_name: str,
        now: int | None = None,
    ) -> AccessDecision:
        check_ban = self._settings.check_ban
        check_whitelist = self._settings.check_whitelist
        if not check_ban and not check_whitelist:
            return AccessDecision(allow=True, reason="checks disabled")

        if not isinstance(player_name, str):
            raise ValidationError("playerName should be an string.")
        if not isinstance(identifiers, list):
            raise ValidationError("Identifiers should be an array with at least 1 identifier.")
        valid_identifiers = filter_valid(identifiers)
        ts = now if now is not None else now_ts()

        try:
            history = self._ledger.get_registered_actions(
                ActionQuery(
                    identifiers=valid_identifiers,
                    action_types=("ban", "whitelist"),
                    active_only=True,
                    now=ts,
                )
            )

            if check_ban:
                ban = next((action for action in history if action["type"] == "ban"), None)
                if ban:
                    msg = f"You have been banned from this server.\nBan ID: {ban['id']}."
                    return AccessDecision(allow=False, reason=msg)

            if check_whitelist:
                whitelisted = any(action["type"] == "whitelist" for action in history)
                if not whitelisted:
                    license = find_primary_license(valid_identifiers)
                    if not license:
                        return AccessDecision(
                            allow=False,
                            reason="the whitelist module requires a license identifier.",
                        )
                    request_id = self._upsert_pending_request(license, player_name, ts)
                    reason = self._settings.whitelist_rejection_message.replace(
                        PENDING_ID_PLACEHOLDER, request_id
                    )
                    return AccessDecision(allow=False, reason=reason)

            return AccessDecision(allow=True, reason=None)
        except Exception as exc:
            msg = f"Failed to check whitelist/blacklist: {exc}"
            log_failure(logger, msg, verbose=self._settings.verbose)
            return AccessDecision(allow=False, reason=msg)
