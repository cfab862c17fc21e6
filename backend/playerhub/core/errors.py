class PlayerHubError(Exception):
    """Base class for every error raised by the player controller."""


class ValidationError(PlayerHubError):
    pass


class InvalidReference(ValidationError):
    def __init__(self, invalid: list | None = None, message: str | None = None) -> None:
        self.invalid = list(invalid or [])
        if message is None:
            message = "Invalid identifiers: " + ", ".join(str(entry) for entry in self.invalid)
        super().__init__(message)


class UnknownSession(PlayerHubError):
    def __init__(self, session_id: int) -> None:
        self.session_id = session_id
        super().__init__(f"player {session_id} disconnected")


class NoIdentifiers(PlayerHubError):
    def __init__(self, session_id: int) -> None:
        self.session_id = session_id
        super().__init__(f"player {session_id} has no identifiers")


class StoreReadError(PlayerHubError):
    pass


class StoreWriteError(PlayerHubError):
    pass


class NotImplementedYet(PlayerHubError):
    pass
