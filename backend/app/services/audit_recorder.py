"""Audit Recorder — best-effort, non-blocking activity log for privileged mutations.

Invariants:
    - record() is synchronous, never awaits and never raises to its caller
    - Entries go through a bounded asyncio.Queue; a full queue drops the entry (logged)
    - A single worker task drains the queue; every write failure is caught, logged as
      AuditWriteFailed and the worker keeps running
    - The triggering mutation's outcome never depends on the audit write

Design Decisions:
    - Queue + worker instead of awaiting the insert inline: the request path only
      pays for a put_nowait
    - Mutation and audit entry are separate writes; a crash between them leaves a
      mutation without an entry (accepted, best-effort not at-least-once)
    - Worker is started lazily on first record() inside a running loop, so request
      handlers and background jobs can share one recorder
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from app.core.errors import AuditWriteFailedError
from app.core.repository_protocols import AuditEntry, AuditLogRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class AuditRecorder:
    """Fire-and-forget writer in front of an AuditLogRepository."""

    def __init__(
        self,
        repository: AuditLogRepository,
        max_size: int = 1000,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.clock = clock
        self._queue: asyncio.Queue[AuditEntry] = asyncio.Queue(maxsize=max_size)
        self._worker: asyncio.Task | None = None
        self.dropped = 0
        self.failed = 0

    # ─── Producer side ──────────────────────────────────────────

    def record(
        self,
        actor_id: str,
        action: str | Enum,
        target_kind: str | Enum | None = None,
        target_id: str | None = None,
        diff: dict | None = None,
    ) -> None:
        """Enqueue one entry. Never raises."""
        try:
            entry = AuditEntry(
                actor_id=str(actor_id),
                action=_text(action),
                target_kind=_text(target_kind),
                target_id=_text(target_id),
                changes=diff,
                created_at=self.clock(),
            )
            self._ensure_worker()
            self._queue.put_nowait(entry)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.error(
                "Audit queue full, dropping entry",
                extra={
                    "action": _text(action), "target_id": _text(target_id),
                    "queue_size": self._queue.qsize(),
                },
            )
        except Exception as e:
            self.dropped += 1
            logger.error(
                f"Audit entry could not be queued: {e}",
                extra={"action": _text(action)},
                exc_info=True,
            )

    # ─── Consumer side ──────────────────────────────────────────

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            loop = asyncio.get_running_loop()
            self._worker = loop.create_task(self._run(), name="audit-recorder")

    async def _run(self) -> None:
        while True:
            entry = await self._queue.get()
            try:
                await self.repository.append(entry)
            except Exception as e:
                self.failed += 1
                error = AuditWriteFailedError(str(e), entry.action)
                logger.error(
                    error.message,
                    extra={
                        "error_code": error.code,
                        "action": entry.action,
                        "user_id": entry.actor_id,
                        "target_id": entry.target_id,
                    },
                )
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued entry has been attempted."""
        if self._worker is None:
            return
        await self._queue.join()

    async def stop(self) -> None:
        """Drain the queue, then stop the worker."""
        await self.join()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()
