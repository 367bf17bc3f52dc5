"""Error taxonomy shared by the game store and its clients."""


class GameError(Exception):
    """Base class for structured game failures with a readable message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(GameError):
    """A game, player or photo does not exist."""


class InvalidInputError(GameError):
    """A request carried an unknown topic, a missing file or similar."""


class TransportError(GameError):
    """The server could not be reached or returned an unreadable response."""


class SessionExpiredError(GameError):
    """The locally stored session is past its expiry window."""
