"""Category plugin building pooled PostgreSQL connectors via asyncpg."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Coroutine

import asyncpg

from ..errors import ConnectorError
from .base import CategoryPlugin
from .types import NAME_KEY, Profile

LOG = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5432


class PostgresConnector:
    """Synchronous facade over a single asyncpg connection.

    The connection and its private event loop are created on first use, so a
    connector that was never used can be closed without touching the network.
    """

    def __init__(self, profile: Profile, *, connect_timeout: float = 3.0) -> None:
        self._profile = dict(profile)
        self._connect_timeout = float(profile.get("connect_timeout", connect_timeout))
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: threading.Thread | None = None
        self._conn: Any | None = None
        self._closed = False

    @property
    def name(self) -> str:
        return str(self._profile.get(NAME_KEY, ""))

    @property
    def profile(self) -> Profile:
        return dict(self._profile)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def fetch(self, query: str, *args: object) -> list[Any]:
        """Run a query and return its rows."""

        return self._run(self._fetch(query, *args))

    def execute(self, query: str, *args: object) -> str:
        """Run a statement and return its status string."""

        return self._run(self._execute(query, *args))

    def close(self) -> None:
        """Close the connection and stop the event loop; safe to repeat."""

        if self._closed:
            return
        self._closed = True
        if self._loop is None:
            return
        try:
            if self._conn is not None:
                asyncio.run_coroutine_threadsafe(self._conn.close(), self._loop).result()
        except Exception as exc:
            raise ConnectorError(f"Failed to close connection for profile '{self.name}': {exc}") from exc
        finally:
            self._conn = None
            self._loop.call_soon_threadsafe(self._loop.stop)
            if self._loop_thread is not None:
                self._loop_thread.join(timeout=1)
            self._loop = None
            self._loop_thread = None

    def _run(self, coro: Coroutine[Any, Any, Any]) -> Any:
        if self._closed:
            coro.close()
            raise ConnectorError(f"Connector for profile '{self.name}' is closed")
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        return future.result()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.new_event_loop()
            self._loop_thread = threading.Thread(
                target=self._loop.run_forever,
                name=f"profilekit-postgres-{self.name or 'connector'}",
                daemon=True,
            )
            self._loop_thread.start()
        return self._loop

    async def _fetch(self, query: str, *args: object) -> list[Any]:
        conn = await self._connection()
        try:
            return list(await conn.fetch(query, *args))
        except Exception as exc:
            raise ConnectorError(f"Query failed for profile '{self.name}': {exc}") from exc

    async def _execute(self, query: str, *args: object) -> str:
        conn = await self._connection()
        try:
            return await conn.execute(query, *args)
        except Exception as exc:
            raise ConnectorError(f"Statement failed for profile '{self.name}': {exc}") from exc

    async def _connection(self) -> Any:
        if self._conn is None:
            self._conn = await self._connect()
        return self._conn

    async def _connect(self) -> Any:
        kwargs = connect_kwargs(self._profile)
        kwargs.setdefault("timeout", self._connect_timeout)
        try:
            return await asyncpg.connect(**kwargs)
        except Exception as exc:
            raise ConnectorError(f"Failed to connect to profile '{self.name}': {exc}") from exc


def connect_kwargs(profile: Profile) -> dict[str, object]:
    """Translate a normalized profile into ``asyncpg.connect`` arguments."""

    kwargs: dict[str, object] = {}
    if profile.get("dsn"):
        kwargs["dsn"] = profile["dsn"]
        return kwargs
    for key in ("host", "port", "user", "password", "database"):
        value = profile.get(key)
        if value is not None and value != "":
            kwargs[key] = value
    return kwargs


class PostgresPlugin(CategoryPlugin):
    """Normalizes PostgreSQL profiles and owns their pooled connectors."""

    def consolidate(self, profile: Profile) -> Profile:
        if "dbname" in profile:
            dbname = profile.pop("dbname")
            profile.setdefault("database", dbname)
        if profile.get("dsn"):
            return profile
        if not profile.get("host"):
            profile["host"] = DEFAULT_HOST
        port = profile.get("port")
        if port is None or port == "":
            profile["port"] = DEFAULT_PORT
        elif isinstance(port, str) and port.isdigit():
            profile["port"] = int(port)
        return profile

    def get_instance_for_pool(self, name: str, profile: Profile) -> PostgresConnector | None:
        if not profile.get("dsn") and not profile.get("database"):
            LOG.debug(
                "Profile has neither dsn nor database; no connector built",
                extra={"category": self.category, "profile": name},
            )
            return None
        return PostgresConnector(profile)

    def close_instance_for_pool(self, name: str, instance: Any) -> None:
        if instance is None:
            return
        instance.close()


__all__ = ["DEFAULT_HOST", "DEFAULT_PORT", "PostgresConnector", "PostgresPlugin", "connect_kwargs"]
