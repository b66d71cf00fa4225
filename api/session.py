"""Session management with Redis backend and in-memory fallback."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Annotated, Any
from uuid import uuid4

import redis.asyncio as redis
from fastapi import Header, HTTPException
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from redis.exceptions import RedisError

from config import config

logger = logging.getLogger(__name__)

# Session data keys
SESSION_KEY_ACCOUNT = "account_id"
SESSION_KEY_CREATED_AT = "created_at"


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(secret_key or config.security.secret_key)

    def sign(self, session_id: str) -> str:
        """Create a signed token from a session ID."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract session_id from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session ID if valid, None otherwise
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None


# Global signer instance
_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


class SessionStore(ABC):
    """Abstract session store, keyed by signed session token."""

    @abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Get session data."""
        ...

    @abstractmethod
    async def set(self, session_id: str, data: dict[str, Any], ttl: int | None = None) -> None:
        """Set session data."""
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Delete session."""
        ...

    async def exists(self, session_id: str) -> bool:
        """Check if session exists."""
        return await self.get(session_id) is not None

    def create_session_id(self, signed: bool = True) -> str:
        """Create a new session ID, signed unless asked otherwise."""
        session_id = str(uuid4())
        if signed:
            return get_session_signer().sign(session_id)
        return session_id


class InMemorySessionStore(SessionStore):
    """In-memory session store for local development and tests."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[dict[str, Any], datetime]] = {}

    async def get(self, session_id: str) -> dict[str, Any] | None:
        if session_id not in self._sessions:
            return None

        data, expiry = self._sessions[session_id]
        if expiry < datetime.now():
            await self.delete(session_id)
            return None
        return data

    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        expiry = datetime.now() + timedelta(seconds=ttl or config.session_ttl)
        self._sessions[session_id] = (data, expiry)

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def cleanup_expired(self) -> int:
        """Remove expired sessions."""
        now = datetime.now()
        expired = [sid for sid, (_, expiry) in self._sessions.items() if expiry < now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)


class RedisSessionStore(SessionStore):
    """Redis-backed session store."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client
        self._prefix = "casino:session:"

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        data = await self._redis.get(self._key(session_id))
        if data is None:
            return None
        return json.loads(data)

    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        await self._redis.setex(
            self._key(session_id),
            ttl or config.session_ttl,
            json.dumps(data),
        )

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id))

    async def exists(self, session_id: str) -> bool:
        return await self._redis.exists(self._key(session_id)) > 0


_redis_client: redis.Redis | None = None
_redis_checked = False


async def get_redis() -> redis.Redis | None:
    """Connect to Redis once; None when it is unreachable."""
    global _redis_client, _redis_checked

    if _redis_checked:
        return _redis_client
    _redis_checked = True

    client = redis.from_url(config.redis.url, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis unavailable at %s (%s), using in-memory stores", config.redis.url, exc)
        return None

    _redis_client = client
    return _redis_client


# Global session store instance
_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Get or create the session store."""
    global _session_store

    if _session_store is None:
        client = await get_redis()
        _session_store = RedisSessionStore(client) if client is not None else InMemorySessionStore()
    return _session_store


async def create_session(data: dict[str, Any] | None = None) -> str:
    """Create a new session and return its signed token."""
    store = await get_session_store()
    session_id = store.create_session_id()
    payload = {SESSION_KEY_CREATED_AT: int(datetime.now().timestamp())}
    payload.update(data or {})
    await store.set(session_id, payload)
    return session_id


async def get_session(session_id: str) -> dict[str, Any] | None:
    store = await get_session_store()
    return await store.get(session_id)


async def update_session(session_id: str, data: dict[str, Any]) -> None:
    store = await get_session_store()
    await store.set(session_id, data)


async def delete_session(session_id: str) -> None:
    store = await get_session_store()
    await store.delete(session_id)


async def get_session_account_id(session_id: str) -> str | None:
    """Return the account logged in on a session, if any."""
    data = await get_session(session_id)
    if data is None:
        return None
    return data.get(SESSION_KEY_ACCOUNT)


async def bind_account(session_id: str, account_id: str | None) -> None:
    """Attach an account to a session (None logs it out)."""
    data = await get_session(session_id) or {}
    if account_id is None:
        data.pop(SESSION_KEY_ACCOUNT, None)
    else:
        data[SESSION_KEY_ACCOUNT] = account_id
    await update_session(session_id, data)


def extract_session_id(token: str) -> str | None:
    """
    Extract the raw session ID from a signed token.

    Args:
        token: The signed session token

    Returns:
        The raw session ID if valid, None otherwise
    """
    return get_session_signer().unsign(token)


async def require_session(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> str:
    """Dependency: a valid, live session token from the X-Session-ID header."""
    if extract_session_id(session_id) is None or await get_session(session_id) is None:
        raise HTTPException(status_code=401, detail="No active session")
    return session_id


async def optional_session(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> str | None:
    """Dependency: the session token if present and valid, else None."""
    if session_id is None or extract_session_id(session_id) is None:
        return None
    if await get_session(session_id) is None:
        return None
    return session_id
