"""
HireAssist Backend - Key-Value Store.

Storage abstraction injected into the user directory. The directory only needs
get / set / delete by key and enumeration of a namespace, so any backing
database that offers those can replace the in-memory implementation without
touching directory logic.

Architecture Layer: Infrastructure
Principles: Repository Pattern, Dependency Inversion
"""
from __future__ import annotations

import asyncio
import copy
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

USERS = "users"
SESSIONS = "sessions"


class KeyValueStore(ABC):
    """
    Abstract namespaced key-value store.

    Values are JSON-compatible dicts. Implementations must not hand out
    references to their internal state.
    """

    @abstractmethod
    async def get(self, namespace: str, key: str) -> dict[str, Any] | None:
        """Return the value stored under ``key`` or None."""

    @abstractmethod
    async def set(self, namespace: str, key: str, value: dict[str, Any]) -> None:
        """Create or replace the value stored under ``key``."""

    @abstractmethod
    async def delete(self, namespace: str, key: str) -> bool:
        """
        Delete ``key``.

        Returns:
            True if deleted, False if not found
        """

    @abstractmethod
    async def items(self, namespace: str) -> list[tuple[str, dict[str, Any]]]:
        """Enumerate all entries of a namespace."""

    @abstractmethod
    async def count(self, namespace: str) -> int:
        """Number of entries in a namespace."""

    async def health(self) -> dict[str, Any]:
        """Basic health report."""
        return {"status": "healthy", "type": type(self).__name__}


class InMemoryKeyValueStore(KeyValueStore):
    """
    In-memory store for development and testing.

    NOT suitable for production - data is lost on restart.
    Writes are serialized with an asyncio lock.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self._started_at = datetime.now(timezone.utc)

    async def get(self, namespace: str, key: str) -> dict[str, Any] | None:
        value = self._data.get(namespace, {}).get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, namespace: str, key: str, value: dict[str, Any]) -> None:
        async with self._lock:
            self._data.setdefault(namespace, {})[key] = copy.deepcopy(value)
            logger.debug("store_set", namespace=namespace, key_prefix=key[:20])

    async def delete(self, namespace: str, key: str) -> bool:
        async with self._lock:
            bucket = self._data.get(namespace, {})
            if key not in bucket:
                return False
            del bucket[key]
            logger.debug("store_delete", namespace=namespace, key_prefix=key[:20])
            return True

    async def items(self, namespace: str) -> list[tuple[str, dict[str, Any]]]:
        return [(key, copy.deepcopy(value)) for key, value in self._data.get(namespace, {}).items()]

    async def count(self, namespace: str) -> int:
        return len(self._data.get(namespace, {}))

    async def health(self) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            "status": "healthy",
            "type": "in-memory",
            "stats": {namespace: len(bucket) for namespace, bucket in self._data.items()},
            "uptime_seconds": (now - self._started_at).total_seconds(),
            "timestamp": now.isoformat(),
        }

    # --- Testing Utilities ---

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._data.clear()
