"""Durable key/value storage backed by SQLite, mirroring browser localStorage."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Protocol

import structlog
from sqlmodel import Session, select

from scijournal.db import StorageEntry, get_engine
from scijournal.settings import Settings

logger = structlog.get_logger(__name__)

TOKEN_KEY = "token"


class KeyValueStorage(Protocol):
    """High-level contract for the client's durable storage."""

    async def get_item(self, key: str) -> str | None:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...

    async def remove_item(self, key: str) -> None:
        ...


class LocalStorage(KeyValueStorage):
    """SQLite-backed implementation of the client's local storage."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._lock = asyncio.Lock()
        self._settings.ensure_directories()
        self._engine = get_engine(str(self._settings.db_path))

    async def get_item(self, key: str) -> str | None:
        async with self._lock:
            return await asyncio.to_thread(self.get_item_sync, key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self.set_item_sync, key, value)

    async def remove_item(self, key: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self.remove_item_sync, key)

    async def keys(self, prefix: str = "") -> list[str]:
        async with self._lock:
            return await asyncio.to_thread(self._keys_sync, prefix)

    # Synchronous API, used by the CLI and from worker threads ---------------

    def get_item_sync(self, key: str) -> str | None:
        with Session(self._engine) as session:
            entry = session.get(StorageEntry, key)
            return entry.value if entry else None

    def set_item_sync(self, key: str, value: str) -> None:
        with Session(self._engine) as session:
            entry = session.get(StorageEntry, key)
            if entry is None:
                entry = StorageEntry(key=key, value=value)
            entry.value = value
            entry.updated_at = datetime.utcnow()
            session.add(entry)
            session.commit()
        logger.debug("storage.set", key=key)

    def remove_item_sync(self, key: str) -> None:
        with Session(self._engine) as session:
            entry = session.get(StorageEntry, key)
            if entry is None:
                return
            session.delete(entry)
            session.commit()
        logger.debug("storage.removed", key=key)

    def _keys_sync(self, prefix: str) -> list[str]:
        with Session(self._engine) as session:
            statement = select(StorageEntry.key).order_by(StorageEntry.key)
            if prefix:
                statement = statement.where(StorageEntry.key.startswith(prefix))
            return list(session.exec(statement).all())


class MemoryStorage(KeyValueStorage):
    """Process-local storage for tests and one-off scripts."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)
