from dataclasses import dataclass, field
import logging

from playerhub.core.errors import (
    InvalidReference,
    NoIdentifiers,
    NotImplementedYet,
    StoreReadError,
    StoreWriteError,
    UnknownSession,
    ValidationError,
)
from playerhub.db.store import DocumentStore
from playerhub.services.code_service import CodeGenerator, generate_short_code
from playerhub.services.identifier_service import is_valid_identifier
from playerhub.services.roster_state import RosterState, now_ts

logger = logging.getLogger("playerhub.ledger")

ACTION_TYPES = ("ban", "warn", "whitelist")
ACTION_PREFIXES: dict[str, str] = {
    "warn": "A",
    "ban": "B",
    "whitelist": "W",
}
MAX_CODE_GENERATION_ATTEMPTS = 40


@dataclass
class ActionQuery:
    identifiers: list[str]
    action_types: tuple[str, ...] = field(default_factory=tuple)
    active_only: bool = False
    author: str | None = None
    now: int | None = None


def is_action_active(action: dict, now: int) -> bool:
    revocation = action.get("revocation") or {}
    if revocation.get("timestamp") is not None:
        return False
    expiration = action.get("expiration")
    return expiration is None or expiration is False or expiration > now


class LedgerService:
    def __init__(
        self,
        store: DocumentStore,
        state: RosterState,
        code_generator: CodeGenerator = generate_short_code,
    ) -> None:
        self._store = store
        self._state = state
        self._generate_code = code_generator

    def _resolve_reference(self, reference: list | int) -> list[str]:
        if isinstance(reference, list):
            if not reference:
                raise InvalidReference(message="You must send at least one identifier")
            invalids = [entry for entry in reference if not is_valid_identifier(entry)]
            if invalids:
                raise InvalidReference(invalids)
            return list(reference)

        if isinstance(reference, int) and not isinstance(reference, bool):
            session = self._state.find_session_by_id(reference)
            if session is None:
                raise UnknownSession(reference)
            if not session.identifiers:
                raise NoIdentifiers(reference)
            return list(session.identifiers)

        raise InvalidReference(
            message=(
                "Reference expected to be an array of strings or id. "
                f"Received '{type(reference).__name__}'."
            )
        )

    def _new_action_id(self, action_type: str) -> str:
        prefix = ACTION_PREFIXES[action_type]
        for _ in range(MAX_CODE_GENERATION_ATTEMPTS):
            candidate = f"{prefix}{self._generate_code(3)}-{self._generate_code(4)}"
            if self._store.find("actions", id=candidate) is None:
                return candidate
        raise StoreWriteError("Unable to generate unique action id")

    def register_action(
        self,
        reference: list | int,
        action_type: str,
        author: str,
        reason: str,
        expiration: int | None = None,
    ) -> str:
        if action_type not in ACTION_TYPES:
            raise ValidationError(f"Unsupported action type '{action_type}'")
        if not isinstance(author, str) or not author.strip():
            raise ValidationError("author is required")
        if not isinstance(reason, str):
            raise ValidationError("reason should be a string")
        if expiration is not None and (
            isinstance(expiration, bool) or not isinstance(expiration, int)
        ):
            raise ValidationError("expiration should be a timestamp or null")

        identifiers = self._resolve_reference(reference)
        action_id = self._new_action_id(action_type)
        document = {
            "id": action_id,
            "type": action_type,
            "author": author.strip(),
            "reason": reason,
            "expiration": expiration,
            "timestamp": now_ts(),
            "identifiers": identifiers,
            "revocation": {
                "timestamp": None,
                "author": None,
            },
        }
        try:
            self._store.insert("actions", document)
        except Exception as exc:
            msg = f"Failed to register event to database with message: {exc}"
            logger.error(msg)
            raise StoreWriteError(msg) from exc
        self._state.mark_dirty()
        logger.info("Registered %s %s for %s", action_type, action_id, ", ".join(identifiers))
        return action_id

    def get_registered_actions(self, query: ActionQuery) -> list[dict]:
        if not isinstance(query.identifiers, list):
            raise ValidationError("Identifiers should be an array")
        wanted = set(query.identifiers)
        ts = query.now if query.now is not None else now_ts()
        try:
            actions = self._store.filter("actions")
        except Exception as exc:
            msg = f"Failed to search for a registered action database with error: {exc}"
            logger.error(msg)
            raise StoreReadError(msg) from exc

        results = []
        for action in actions:
            if query.action_types and action.get("type") not in query.action_types:
                continue
            if query.author is not None and action.get("author") != query.author:
                continue
            if query.active_only and not is_action_active(action, ts):
                continue
            if not wanted.intersection(action.get("identifiers") or []):
                continue
            results.append(action)
        return results

    def get_action(self, action_id: str) -> dict | None:
        try:
            return self._store.find("actions", id=action_id)
        except Exception as exc:
            raise StoreReadError(f"Failed to load action {action_id}: {exc}") from exc

    def revoke_action(self, action_id: str, author: str) -> str:
        # TODO: set revocation.timestamp/author once revocation rules are agreed on.
        raise NotImplementedYet("action revocation is not implemented yet")
