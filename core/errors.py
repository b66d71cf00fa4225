"""Errors raised by the game core and its account gateway."""


class BlackjackError(Exception):
    """Base class for all game errors."""


class InvalidBet(BlackjackError):
    """A bet was rejected; the round state is unchanged."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class IllegalAction(BlackjackError):
    """An action was attempted outside the player's turn.

    The engine ignores such actions instead of raising; the type exists so
    transports can name the condition.
    """


class GatewayError(BlackjackError):
    """Base class for session/account gateway failures."""


class InvalidCredentials(GatewayError):
    """Unknown email or wrong password."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class ValidationFailed(GatewayError):
    """A registration field failed validation."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class AlreadyExists(GatewayError):
    """The username or email is already registered."""

    def __init__(self) -> None:
        super().__init__("Username or email already exists")


class NotAuthenticated(GatewayError):
    """The session has no logged-in account."""

    def __init__(self) -> None:
        super().__init__("No active session")


class GatewayReportFailure(GatewayError):
    """A settled round could not be recorded."""
