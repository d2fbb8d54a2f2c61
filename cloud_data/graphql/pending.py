"""
Pending request table.

Tracks in-flight network operations by fingerprint so that concurrent
identical requests share a single operation.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


@dataclass
class PendingEntry:
    """An in-flight operation and its bookkeeping."""

    task: asyncio.Future[Any]
    created_at: float = field(default_factory=time.time)
    request_count: int = 1

    def add_waiter(self) -> None:
        """Increment the count of callers sharing this operation."""
        self.request_count += 1

    @property
    def age_seconds(self) -> float:
        return time.time() - self.created_at


class PendingRequestTable:
    """
    At most one in-flight operation per fingerprint.

    ``get_or_create`` tests membership and inserts under one lock and with no
    suspension point in between, so two callers can never both observe an
    absent entry and both start an operation. Entries are removed when their
    operation settles, whatever the outcome.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, PendingEntry] = {}
        self._lock = threading.Lock()
        self._stats = {
            "created": 0,
            "coalesced": 0,
            "failed": 0,
        }

    def get_or_create(
        self, fingerprint: str, factory: Callable[[], Awaitable[Any]]
    ) -> asyncio.Future[Any]:
        """
        Return the in-flight operation for ``fingerprint``, starting it if needed.

        Args:
            fingerprint: Coalescing key
            factory: Called only when no operation is outstanding; returns the
                awaitable that performs the operation

        Returns:
            Shared future of the operation's result
        """
        with self._lock:
            entry = self._pending.get(fingerprint)
            if entry is not None:
                entry.add_waiter()
                self._stats["coalesced"] += 1
                logger.debug(
                    "Coalescing request %s onto in-flight operation (%d waiters)",
                    fingerprint[:16],
                    entry.request_count,
                )
                return entry.task

            task = asyncio.ensure_future(factory())
            self._pending[fingerprint] = PendingEntry(task)
            self._stats["created"] += 1

        task.add_done_callback(functools.partial(self._settle, fingerprint))
        return task

    def _settle(self, fingerprint: str, task: asyncio.Future[Any]) -> None:
        """Completion hook: drop the entry and surface unexpected failures."""
        with self._lock:
            entry = self._pending.get(fingerprint)
            if entry is not None and entry.task is task:
                del self._pending[fingerprint]

        if task.cancelled():
            logger.debug("Pending operation %s was cancelled", fingerprint[:16])
            return

        error = task.exception()
        if error is not None:
            self._stats["failed"] += 1
            logger.error(
                "Pending operation %s failed: %s", fingerprint[:16], error,
                exc_info=error,
            )

    def is_pending(self, fingerprint: str) -> bool:
        """Whether an operation for ``fingerprint`` is currently outstanding."""
        with self._lock:
            return fingerprint in self._pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the current coalescing state."""
        with self._lock:
            return {
                **self._stats,
                "pending_requests": len(self._pending),
                "pending_details": [
                    {
                        "fingerprint": key[:16] + "...",
                        "age_seconds": entry.age_seconds,
                        "request_count": entry.request_count,
                        "is_done": entry.task.done(),
                    }
                    for key, entry in self._pending.items()
                ],
            }
