# foodstore/db.py
"""MongoDB connection handle and its readiness state.

The readiness of the connection is an explicit ``ConnectionState`` value owned
by a ``Database`` and handed to every handler, instead of a module-level flag.
Driver heartbeats publish transitions through ``ConnectionState.subscribe``.

A ``Database`` only accepts requests once the connection is ready *and* the
unique indexes every resource declares exist; without them duplicate names,
emails and lot keys would be stored silently.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import monitoring
from pymongo.errors import PyMongoError

from foodstore.core.config import Settings
from foodstore.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

Listener = Callable[["ConnectionState"], None]


class ConnectionState:
    def __init__(self, ready: bool = False, error: BaseException | None = None) -> None:
        self.ready = ready
        self.error = error
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for every transition; returns an unsubscribe callable.

        Transitions driven by ``HeartbeatListener`` are published from the
        driver's monitor threads, not from the event loop.  A listener that
        touches the loop must hand its work over with
        ``loop.call_soon_threadsafe``.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def mark_ready(self) -> None:
        if self.ready:
            return
        self.ready = True
        self.error = None
        logger.info("database connection ready")
        self._publish()

    def mark_lost(self, error: BaseException | None = None) -> None:
        was_ready = self.ready
        self.ready = False
        self.error = error or ConnectionError("Lost connection to MongoDB.")
        if was_ready:
            logger.warning("database connection lost: %s", self.error)
            self._publish()

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self)


class HeartbeatListener(monitoring.ServerHeartbeatListener):
    """Drive a ``ConnectionState`` from the driver's server heartbeats.

    pymongo runs one monitor thread per server, so each server's health is
    tracked separately.  The state is ready while at least one server answers
    and lost only once every known server has failed.
    """

    def __init__(self, state: ConnectionState) -> None:
        self.state = state
        self._lock = threading.Lock()
        self._healthy: set[Any] = set()

    def started(self, event: monitoring.ServerHeartbeatStartedEvent) -> None:
        pass

    def succeeded(self, event: monitoring.ServerHeartbeatSucceededEvent) -> None:
        with self._lock:
            self._healthy.add(event.connection_id)
            self.state.mark_ready()

    def failed(self, event: monitoring.ServerHeartbeatFailedEvent) -> None:
        with self._lock:
            self._healthy.discard(event.connection_id)
            if self._healthy:
                logger.warning("heartbeat failed for %s: %s", event.connection_id, event.reply)
                return
            self.state.mark_lost(event.reply)


class Database:
    """A database handle plus the readiness state handlers consult first."""

    def __init__(self, db: Any, state: ConnectionState, client: Any = None) -> None:
        self.db = db
        self.state = state
        self.client = client
        self.indexed = False

    @property
    def ready(self) -> bool:
        return self.state.ready and self.indexed

    def collection(self, name: str) -> Any:
        return self.db[name]

    def require_ready(self) -> None:
        if not self.state.ready:
            raise StorageUnavailable(str(self.state.error or ""))
        if not self.indexed:
            raise StorageUnavailable("unique indexes are not built yet")

    async def ping(self) -> bool:
        res = await self.db.command("ping")
        return bool(res.get("ok"))

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def connect(settings: Settings) -> Database:
    state = ConnectionState()
    client = AsyncIOMotorClient(
        settings.mongo_uri,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        event_listeners=[HeartbeatListener(state)],
    )
    return Database(client[settings.db_name], state, client=client)


async def ensure_indexes(database: Database, schemas: list[Any]) -> None:
    """Create the unique indexes each resource schema declares."""
    for schema in schemas:
        collection = database.collection(schema.collection)
        for keys in schema.indexes:
            await collection.create_index(keys, unique=True)
            logger.debug("ensured unique index %s on %s", keys, schema.collection)
    database.indexed = True


def rebuild_indexes_on_ready(
    database: Database,
    schemas: list[Any],
    loop: asyncio.AbstractEventLoop,
) -> Callable[[], None]:
    """Retry ``ensure_indexes`` on every ready transition until it succeeds.

    Returns a callable that stops listening.
    """
    pending: set[asyncio.Task] = set()

    async def rebuild() -> None:
        if database.indexed:
            return
        try:
            await ensure_indexes(database, schemas)
        except PyMongoError as exc:
            logger.warning("could not ensure indexes, waiting for the next reconnect: %s", exc)
            return
        logger.info("unique indexes built after reconnect")
        unsubscribe()

    def schedule() -> None:
        task = loop.create_task(rebuild())
        pending.add(task)
        task.add_done_callback(pending.discard)

    def on_transition(state: ConnectionState) -> None:
        if state.ready:
            loop.call_soon_threadsafe(schedule)

    unsubscribe = database.state.subscribe(on_transition)
    return unsubscribe
