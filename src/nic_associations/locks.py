"""Named locks that serialize mutations of the same Azure resource."""

from __future__ import annotations

import asyncio
import weakref
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()

# Shared by every association kind that rewrites a network interface.
NETWORK_INTERFACE_LOCK_KIND = "azurerm_network_interface"

_shared_managers: weakref.WeakKeyDictionary[
    asyncio.AbstractEventLoop, KeyedLockManager
] = weakref.WeakKeyDictionary()


@runtime_checkable
class LockManager(Protocol):
    """Mutual exclusion keyed by (kind, name)."""

    async def acquire(self, name: str, kind: str) -> None: ...

    def release(self, name: str, kind: str) -> None: ...

    def lock(self, name: str, kind: str) -> AbstractAsyncContextManager[None]:
        """Hold the (kind, name) lock for the duration of the ``async with`` block."""
        ...


class KeyedLockManager:
    """One ``asyncio.Lock`` per (kind, name).

    Different keys proceed concurrently; the same key serializes. Locks are
    created on first use and never removed, so a lookup can never race with
    a deletion.
    """

    def __init__(self) -> None:
        self._locks: dict[tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)

    def locked(self, name: str, kind: str) -> bool:
        key = (kind, name)
        return key in self._locks and self._locks[key].locked()

    async def acquire(self, name: str, kind: str) -> None:
        lock = self._locks[(kind, name)]
        if lock.locked():
            logger.debug("lock.waiting", kind=kind, name=name)
        await lock.acquire()
        logger.debug("lock.acquired", kind=kind, name=name)

    def release(self, name: str, kind: str) -> None:
        self._locks[(kind, name)].release()
        logger.debug("lock.released", kind=kind, name=name)

    @asynccontextmanager
    async def lock(self, name: str, kind: str) -> AsyncIterator[None]:
        await self.acquire(name, kind)
        try:
            yield
        finally:
            self.release(name, kind)


class NoopLockManager:
    """Lock manager that never blocks. For tests and single-writer tools."""

    async def acquire(self, name: str, kind: str) -> None:
        return None

    def release(self, name: str, kind: str) -> None:
        return None

    @asynccontextmanager
    async def lock(self, name: str, kind: str) -> AsyncIterator[None]:
        yield


def shared_lock_manager() -> KeyedLockManager:
    """Return the registry used by every manager not given its own.

    ``asyncio.Lock`` binds to one event loop, so there is one registry per
    running loop.
    """
    loop = asyncio.get_running_loop()
    manager = _shared_managers.get(loop)
    if manager is None:
        manager = _shared_managers[loop] = KeyedLockManager()
    return manager
