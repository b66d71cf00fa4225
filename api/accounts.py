"""Account and round history storage, and the session-bound account gateway."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

import bcrypt
import redis.asyncio as redis
from redis.exceptions import RedisError

from api.session import bind_account, get_redis, get_session_account_id
from api.validation import validate_profile
from config import config
from core.errors import (
    AlreadyExists,
    GatewayReportFailure,
    InvalidCredentials,
    NotAuthenticated,
)
from core.gateway import (
    Account,
    AccountGateway,
    Credentials,
    ProfileFields,
    RoundRecord,
    RoundResult,
)
from core.hand import Outcome

logger = logging.getLogger(__name__)


@dataclass
class StoredAccount:
    """Account row as persisted."""

    id: str
    username: str
    email: str
    password_hash: str
    birth_date: str
    phone: str
    balance: int
    created_at: int = field(default_factory=lambda: int(datetime.now().timestamp()))

    def to_account(self) -> Account:
        return Account(
            id=self.id,
            display_name=self.username,
            email=self.email,
            balance=self.balance,
        )


def _email_key(email: str) -> str:
    return email.strip().lower()


def _username_key(username: str) -> str:
    return username.strip().lower()


def _serialize_record(record: RoundRecord) -> dict[str, Any]:
    return {
        "outcome": record.outcome.value,
        "bet": record.bet,
        "balance_after": record.balance_after,
        "created_at": record.created_at.isoformat(),
    }


def _deserialize_record(data: dict[str, Any]) -> RoundRecord:
    return RoundRecord(
        outcome=Outcome(data["outcome"]),
        bet=data["bet"],
        balance_after=data["balance_after"],
        created_at=datetime.fromisoformat(data["created_at"]),
    )


async def hash_password(password: str) -> str:
    """bcrypt-hash a password off the event loop."""
    salt = bcrypt.gensalt(rounds=config.security.bcrypt_rounds)
    hashed = await asyncio.to_thread(bcrypt.hashpw, password.encode(), salt)
    return hashed.decode()


async def verify_password(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(bcrypt.checkpw, password.encode(), password_hash.encode())


class AccountStore(ABC):
    """Abstract account and history store."""

    @abstractmethod
    async def get(self, account_id: str) -> StoredAccount | None:
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> StoredAccount | None:
        ...

    @abstractmethod
    async def create(self, account: StoredAccount) -> None:
        """Insert an account. Raises AlreadyExists on a taken username or email."""
        ...

    @abstractmethod
    async def set_balance(self, account_id: str, balance: int) -> None:
        ...

    @abstractmethod
    async def add_history(self, account_id: str, record: RoundRecord) -> None:
        ...

    @abstractmethod
    async def history(self, account_id: str, limit: int) -> list[RoundRecord]:
        """Most recent first."""
        ...


class InMemoryAccountStore(AccountStore):
    """In-memory account store for local development and tests."""

    def __init__(self) -> None:
        self._accounts: dict[str, StoredAccount] = {}
        self._by_email: dict[str, str] = {}
        self._by_username: dict[str, str] = {}
        self._history: dict[str, list[RoundRecord]] = {}

    async def get(self, account_id: str) -> StoredAccount | None:
        return self._accounts.get(account_id)

    async def find_by_email(self, email: str) -> StoredAccount | None:
        account_id = self._by_email.get(_email_key(email))
        return self._accounts.get(account_id) if account_id else None

    async def create(self, account: StoredAccount) -> None:
        email, username = _email_key(account.email), _username_key(account.username)
        if email in self._by_email or username in self._by_username:
            raise AlreadyExists()
        self._accounts[account.id] = account
        self._by_email[email] = account.id
        self._by_username[username] = account.id

    async def set_balance(self, account_id: str, balance: int) -> None:
        self._accounts[account_id].balance = balance

    async def add_history(self, account_id: str, record: RoundRecord) -> None:
        self._history.setdefault(account_id, []).insert(0, record)

    async def history(self, account_id: str, limit: int) -> list[RoundRecord]:
        return self._history.get(account_id, [])[:limit]


class RedisAccountStore(AccountStore):
    """Redis-backed account store."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client
        self._prefix = "casino:"

    def _account_key(self, account_id: str) -> str:
        return f"{self._prefix}account:{account_id}"

    def _email_index(self, email: str) -> str:
        return f"{self._prefix}email:{_email_key(email)}"

    def _username_index(self, username: str) -> str:
        return f"{self._prefix}username:{_username_key(username)}"

    def _history_key(self, account_id: str) -> str:
        return f"{self._prefix}history:{account_id}"

    async def get(self, account_id: str) -> StoredAccount | None:
        data = await self._redis.get(self._account_key(account_id))
        if data is None:
            return None
        return StoredAccount(**json.loads(data))

    async def find_by_email(self, email: str) -> StoredAccount | None:
        account_id = await self._redis.get(self._email_index(email))
        if account_id is None:
            return None
        return await self.get(account_id)

    async def create(self, account: StoredAccount) -> None:
        if not await self._redis.set(self._username_index(account.username), account.id, nx=True):
            raise AlreadyExists()
        if not await self._redis.set(self._email_index(account.email), account.id, nx=True):
            await self._redis.delete(self._username_index(account.username))
            raise AlreadyExists()
        await self._redis.set(self._account_key(account.id), json.dumps(asdict(account)))

    async def set_balance(self, account_id: str, balance: int) -> None:
        account = await self.get(account_id)
        if account is None:
            raise KeyError(account_id)
        account.balance = balance
        await self._redis.set(self._account_key(account_id), json.dumps(asdict(account)))

    async def add_history(self, account_id: str, record: RoundRecord) -> None:
        await self._redis.lpush(self._history_key(account_id), json.dumps(_serialize_record(record)))

    async def history(self, account_id: str, limit: int) -> list[RoundRecord]:
        rows = await self._redis.lrange(self._history_key(account_id), 0, limit - 1)
        return [_deserialize_record(json.loads(row)) for row in rows]


# Global account store instance
_account_store: AccountStore | None = None


async def get_account_store() -> AccountStore:
    """Get or create the account store."""
    global _account_store

    if _account_store is None:
        client = await get_redis()
        _account_store = RedisAccountStore(client) if client is not None else InMemoryAccountStore()
    return _account_store


class SessionGateway(AccountGateway):
    """Account gateway bound to one session token."""

    def __init__(self, session_id: str | None = None, store: AccountStore | None = None) -> None:
        self.session_id = session_id
        self._store = store

    async def _account_id(self) -> str | None:
        if self.session_id is None:
            return None
        return await get_session_account_id(self.session_id)

    async def _accounts(self) -> AccountStore:
        if self._store is None:
            self._store = await get_account_store()
        return self._store

    async def get_session(self) -> Account | None:
        account_id = await self._account_id()
        if account_id is None:
            return None
        stored = await (await self._accounts()).get(account_id)
        return stored.to_account() if stored else None

    async def authenticate(self, credentials: Credentials) -> Account:
        stored = await (await self._accounts()).find_by_email(credentials.email)
        if stored is None or not await verify_password(credentials.password, stored.password_hash):
            logger.info("Failed login for %s", credentials.email)
            raise InvalidCredentials()

        if self.session_id is None:
            raise NotAuthenticated()
        await bind_account(self.session_id, stored.id)
        logger.info("Account %s logged in", stored.username)
        return stored.to_account()

    async def register(self, profile: ProfileFields) -> Account:
        profile = validate_profile(profile)
        stored = StoredAccount(
            id=str(uuid4()),
            username=profile.username,
            email=profile.email,
            password_hash=await hash_password(profile.password),
            birth_date=profile.birth_date.isoformat(),
            phone=profile.phone,
            balance=config.game.initial_balance,
        )
        await (await self._accounts()).create(stored)
        logger.info("Registered account %s", stored.username)
        return stored.to_account()

    async def logout(self) -> None:
        if self.session_id is not None:
            await bind_account(self.session_id, None)

    async def report_round_result(self, result: RoundResult) -> None:
        account_id = await self._account_id()
        if account_id is None:
            raise GatewayReportFailure("session has no account")

        store = await self._accounts()
        try:
            await store.set_balance(account_id, result.new_balance)
            await store.add_history(
                account_id,
                RoundRecord(
                    outcome=result.outcome,
                    bet=result.bet,
                    balance_after=result.new_balance,
                ),
            )
        except (RedisError, KeyError) as exc:
            raise GatewayReportFailure(str(exc)) from exc

    async def fetch_history(self, limit: int) -> list[RoundRecord]:
        account_id = await self._account_id()
        if account_id is None:
            raise NotAuthenticated()
        return await (await self._accounts()).history(account_id, limit)
