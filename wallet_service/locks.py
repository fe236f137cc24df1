"""
Per-wallet locks for the transfer engine.

The database guards the balance itself (guarded UPDATE plus the CHECK
constraint), but two transfers touching the same wallet inside one process
would still interleave their read-check-update steps and contend for the
database write lock. The registry serializes them: a transfer holds the lock
of every wallet it touches for its whole unit of work.

Deadlock prevention:
  Locks are always taken in sorted wallet-id order, the same order the
  engine uses for its SELECT ... FOR UPDATE. Transfer A->B and transfer
  B->A therefore both lock min(A, B) first and can't wait on each other.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from weakref import WeakValueDictionary


class WalletLockRegistry:
    """Hands out one asyncio.Lock per wallet id."""

    def __init__(self) -> None:
        # Weak values: a lock disappears once no transfer holds a reference,
        # so the registry doesn't grow with the number of wallets ever seen.
        self._locks: WeakValueDictionary[uuid.UUID, asyncio.Lock] = WeakValueDictionary()

    def _lock_for(self, wallet_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(wallet_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[wallet_id] = lock
        return lock

    @asynccontextmanager
    async def acquire(self, *wallet_ids: uuid.UUID):
        """
        Hold the locks of all given wallets, acquired in sorted id order.

        Duplicate ids are collapsed, so acquire(a, a) takes a single lock
        instead of deadlocking on itself.
        """
        ordered = sorted(set(wallet_ids))
        locks = [self._lock_for(wallet_id) for wallet_id in ordered]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


# Process-wide registry used by the HTTP layer
wallet_locks = WalletLockRegistry()
