#!/usr/bin/env python3
"""
Remote Cache Client - Optional Shared Tier

Architecture:
    RemoteCacheClient (Public API, never raises)
        └── KeyValueBackend (transport)
            ├── RestKeyValueBackend  (key-value REST interface via httpx)
            └── RedisKeyValueBackend (redis.asyncio)

Failure model:
    Every backend call is bounded by asyncio.wait_for(timeout). Any
    transport, protocol, timeout or decode failure is converted into a
    RemoteResult with status UNAVAILABLE carrying a
    RemoteCacheUnavailableError, and logged as a warning. Callers treat
    UNAVAILABLE exactly like MISS. No retries are performed here.

    When no backend is configured every call returns DISABLED.

Wire format:
    Values are JSON-encoded with orjson before they leave the process.

REST protocol:
    POST <KV_REST_API_URL> with a JSON command array and a bearer token:
        ["SET", key, value, "EX", ttl]   -> {"result": "OK"}
        ["GET", key]                     -> {"result": "<value>"} | {"result": null}
        ["DEL", key]                     -> {"result": 1}
        ["PING"]                         -> {"result": "PONG"}
    An {"error": "..."} body is a failure.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import orjson
import redis.asyncio as redis
from redis.exceptions import RedisError

from channel_cache.core.config.constants import RemoteBackend, Stage
from channel_cache.core.config.settings import RemoteCacheSettings
from channel_cache.core.exceptions import CacheSerializationError, RemoteCacheUnavailableError
from channel_cache.core.logging import get_logger, log_stage, redact_secret

logger = get_logger(__name__)


# =============================================================================
# RESULT TYPE
# =============================================================================


class RemoteStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    OK = "ok"
    UNAVAILABLE = "unavailable"
    DISABLED = "disabled"


@dataclass(frozen=True)
class RemoteResult:
    """
    Outcome of one remote tier call.

    Attributes:
        status: HIT/MISS for reads, OK for writes, UNAVAILABLE on failure,
            DISABLED when the tier is not configured
        value: Decoded value (HIT only)
        error: The absorbed failure (UNAVAILABLE only)
    """

    status: RemoteStatus
    value: Any = None
    error: RemoteCacheUnavailableError | None = None

    @property
    def is_hit(self) -> bool:
        return self.status == RemoteStatus.HIT

    @property
    def is_available(self) -> bool:
        return self.status not in (RemoteStatus.UNAVAILABLE, RemoteStatus.DISABLED)


# =============================================================================
# LAYER 1: TRANSPORTS
# =============================================================================


class KeyValueBackend(ABC):
    """Minimal string key/value transport. Implementations may raise freely."""

    name: str = "unknown"

    @abstractmethod
    async def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class RestKeyValueBackend(KeyValueBackend):
    """
    Key-value REST interface over httpx.

    STAGE-KV.1: REST transport

    Each operation is one POST of a command array to the endpoint root.
    """

    name = "rest"

    def __init__(self, url: str, token: str, client: httpx.AsyncClient | None = None):
        """
        Args:
            url: REST endpoint base URL
            token: Bearer token
            client: Pre-built client (tests pass one with a MockTransport)
        """
        self._url = url.rstrip("/")
        self._client = client or httpx.AsyncClient()
        self._headers = {"Authorization": f"Bearer {token}"}

    async def _command(self, *args: Any) -> Any:
        response = await self._client.post(self._url, json=list(args), headers=self._headers)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise RemoteCacheUnavailableError("Malformed response body", details={"backend": self.name})
        if body.get("error"):
            raise RemoteCacheUnavailableError(
                f"Remote command failed: {body['error']}",
                details={"backend": self.name, "command": args[0]},
            )
        return body.get("result")

    async def get(self, key: str) -> str | None:
        return await self._command("GET", key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._command("SET", key, value, "EX", ttl)

    async def delete(self, key: str) -> None:
        await self._command("DEL", key)

    async def ping(self) -> bool:
        return await self._command("PING") == "PONG"

    async def close(self) -> None:
        await self._client.aclose()


class RedisKeyValueBackend(KeyValueBackend):
    """
    Redis transport via redis.asyncio.

    STAGE-KV.2: Redis transport
    """

    name = "redis"

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        if client is None:
            if not url:
                raise ValueError("RedisKeyValueBackend needs a url or a client")
            client = redis.from_url(url, decode_responses=True)
        self._client = client

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._client.set(key, value, ex=ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()


# Failures absorbed by RemoteCacheClient
_TRANSPORT_ERRORS = (
    asyncio.TimeoutError,
    httpx.HTTPError,
    RedisError,
    RemoteCacheUnavailableError,
    OSError,
    ValueError,
)


# =============================================================================
# LAYER 2: PUBLIC CLIENT
# =============================================================================


class RemoteCacheClient:
    """
    Best-effort read-through/write-through adapter to the remote tier.

    STAGE-2.2: Remote tier

    Usage:
        client = build_remote_client(settings.remote_cache)

        result = await client.get(key)
        if result.is_hit:
            payload = result.value

        await client.set(key, payload, ttl=600)
    """

    def __init__(self, backend: KeyValueBackend | None = None, timeout: float = 2.0):
        """
        Args:
            backend: Transport; None disables the tier
            timeout: Upper bound in seconds for each remote call
        """
        self._backend = backend
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._backend is not None

    @property
    def backend_name(self) -> str:
        return self._backend.name if self._backend else RemoteBackend.NONE.value

    def _unavailable(self, operation: str, key: str | None, exc: Exception) -> RemoteResult:
        if isinstance(exc, asyncio.TimeoutError):
            message = f"Remote {operation} timed out after {self._timeout}s"
        elif isinstance(exc, CacheSerializationError):
            message = f"Remote {operation} skipped: value is not JSON-serializable"
        else:
            message = redact_secret(f"Remote {operation} failed: {exc}")

        if isinstance(exc, RemoteCacheUnavailableError):
            error = exc
        else:
            error = RemoteCacheUnavailableError.from_exception(
                exc, message=message, backend=self.backend_name, operation=operation
            )

        log_stage(
            logger,
            Stage.REMOTE_TIER,
            "Remote tier unavailable",
            level="warning",
            operation=operation,
            backend=self.backend_name,
            cache_key=key,
            error=message,
        )
        return RemoteResult(RemoteStatus.UNAVAILABLE, error=error)

    async def get(self, key: str) -> RemoteResult:
        """
        Read ``key`` from the remote tier.

        Returns:
            HIT with the decoded value, MISS, UNAVAILABLE, or DISABLED
        """
        if self._backend is None:
            return RemoteResult(RemoteStatus.DISABLED)

        try:
            raw = await asyncio.wait_for(self._backend.get(key), timeout=self._timeout)
            if raw is None:
                return RemoteResult(RemoteStatus.MISS)
            return RemoteResult(RemoteStatus.HIT, value=orjson.loads(raw))
        except _TRANSPORT_ERRORS as e:
            return self._unavailable("get", key, e)

    async def set(self, key: str, value: Any, ttl: int) -> RemoteResult:
        """
        Write ``value`` under ``key`` with an expiry of ``ttl`` seconds.

        Returns:
            OK, UNAVAILABLE, or DISABLED
        """
        if self._backend is None:
            return RemoteResult(RemoteStatus.DISABLED)

        try:
            encoded = orjson.dumps(value).decode("utf-8")
        except TypeError as e:
            return self._unavailable("set", key, CacheSerializationError.from_exception(e, key=key))

        try:
            await asyncio.wait_for(self._backend.set(key, encoded, int(ttl)), timeout=self._timeout)
            return RemoteResult(RemoteStatus.OK)
        except _TRANSPORT_ERRORS as e:
            return self._unavailable("set", key, e)

    async def delete(self, key: str) -> RemoteResult:
        if self._backend is None:
            return RemoteResult(RemoteStatus.DISABLED)

        try:
            await asyncio.wait_for(self._backend.delete(key), timeout=self._timeout)
            return RemoteResult(RemoteStatus.OK)
        except _TRANSPORT_ERRORS as e:
            return self._unavailable("delete", key, e)

    async def health_check(self) -> dict[str, Any]:
        """
        Probe the backend with a ping.

        Returns:
            {"status": "disabled" | "healthy" | "degraded", "backend": ...}
        """
        if self._backend is None:
            return {"status": "disabled", "backend": self.backend_name}

        try:
            ok = await asyncio.wait_for(self._backend.ping(), timeout=self._timeout)
        except _TRANSPORT_ERRORS as e:
            result = self._unavailable("ping", None, e)
            return {"status": "degraded", "backend": self.backend_name, "error": result.error.message}

        return {"status": "healthy" if ok else "degraded", "backend": self.backend_name}

    async def close(self) -> None:
        """Release the transport. Close errors are logged, not raised."""
        if self._backend is None:
            return

        try:
            await self._backend.close()
        except _TRANSPORT_ERRORS as e:
            logger.warning("Remote tier close failed", stage=str(Stage.CLEANUP), error=redact_secret(str(e)))

        log_stage(logger, Stage.CLEANUP, "Remote tier closed", backend=self.backend_name)


def build_remote_client(settings: RemoteCacheSettings) -> RemoteCacheClient:
    """
    Construct the remote client selected by configuration.

    STAGE-KV.0: Remote tier initialization

    Missing endpoint or credentials disable the tier silently.
    """
    backend_kind = settings.resolve_backend()
    backend: KeyValueBackend | None = None

    if backend_kind == RemoteBackend.REST:
        backend = RestKeyValueBackend(settings.KV_REST_API_URL, settings.KV_REST_API_TOKEN)
    elif backend_kind == RemoteBackend.REDIS:
        backend = RedisKeyValueBackend(url=settings.REDIS_URL)

    log_stage(
        logger,
        Stage.REMOTE_TIER,
        "Remote tier configured" if backend else "Remote tier disabled",
        backend=backend_kind.value,
        timeout_seconds=settings.REMOTE_CACHE_TIMEOUT,
    )
    return RemoteCacheClient(backend=backend, timeout=settings.REMOTE_CACHE_TIMEOUT)
