"""Contract between the game core and the session/account service."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime

from core.hand import Outcome


@dataclass(frozen=True)
class Account:
    """A registered player."""

    id: str
    display_name: str
    email: str
    balance: int


@dataclass(frozen=True)
class Credentials:
    """Login credentials."""

    email: str
    password: str


@dataclass(frozen=True)
class ProfileFields:
    """Fields submitted when registering."""

    username: str
    email: str
    password: str
    birth_date: date
    phone: str


@dataclass(frozen=True)
class RoundResult:
    """Reported once per settled round."""

    outcome: Outcome
    bet: int
    new_balance: int


@dataclass(frozen=True)
class RoundRecord:
    """A stored round in an account's history."""

    outcome: Outcome
    bet: int
    balance_after: int
    created_at: datetime = field(default_factory=datetime.now)


class RoundReporter(ABC):
    """Receives the result of every settled round."""

    @abstractmethod
    async def report_round_result(self, result: RoundResult) -> None:
        """Record a settled round. May raise GatewayReportFailure."""
        ...


class AccountGateway(RoundReporter):
    """Session-bound account service used by the game."""

    @abstractmethod
    async def get_session(self) -> Account | None:
        """Restore the account logged in on this session, if any."""
        ...

    @abstractmethod
    async def authenticate(self, credentials: Credentials) -> Account:
        """Log in. Raises InvalidCredentials."""
        ...

    @abstractmethod
    async def register(self, profile: ProfileFields) -> Account:
        """Create an account. Raises ValidationFailed or AlreadyExists."""
        ...

    @abstractmethod
    async def fetch_history(self, limit: int) -> list[RoundRecord]:
        """Return past rounds, most recent first."""
        ...
