"""Bounded background dispatch of reply jobs.

The webhook gate hands messages over with :meth:`ReplyDispatcher.submit`,
which never waits. Worker tasks drain the queue and run the orchestrator.
With more than one worker, replies to the same chat can finish out of order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from fanvoice.models import AuditEvent, AuditEventType, FanMessage, RiskLevel

if TYPE_CHECKING:
    from fanvoice.audit.logger import AuditLogger
    from fanvoice.responder.orchestrator import ReplyOrchestrator

logger = logging.getLogger(__name__)


class ReplyDispatcher:
    def __init__(
        self,
        orchestrator: ReplyOrchestrator,
        max_queue: int = 100,
        workers: int = 1,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._queue: asyncio.Queue[FanMessage] = asyncio.Queue(maxsize=max_queue)
        self._worker_count = workers
        self._workers: list[asyncio.Task[None]] = []
        self._audit = audit_logger

    @property
    def running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._work(), name=f"reply-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info("Started %d reply worker(s)", self._worker_count)

    async def stop(self) -> None:
        for task in self._workers:
            task.cancel()
        for task in self._workers:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._workers = []

    async def join(self) -> None:
        """Wait until every submitted message has been processed."""
        await self._queue.join()

    def submit(self, message: FanMessage) -> bool:
        """Queue a reply job; returns False if the queue is full."""
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Reply queue full (%d pending), dropping message for chat %s",
                self._queue.qsize(), message.chat_id,
            )
            if self._audit:
                self._audit.log(AuditEvent(
                    event_type=AuditEventType.REPLY_DROPPED,
                    chat_id=message.chat_id,
                    user_id=message.user_id,
                    action="dispatch",
                    result="dropped",
                    risk_level=RiskLevel.MEDIUM,
                    details={"reason": "queue_full"},
                ))
            return False
        return True

    async def _work(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._orchestrator.respond(message)
            except Exception as exc:  # worker must survive any single job
                logger.exception("Unexpected error replying to chat %s", message.chat_id)
                try:
                    self._orchestrator.record_failure(message, "unexpected", repr(exc))
                except Exception:
                    logger.exception("Could not record failed reply for chat %s", message.chat_id)
            finally:
                self._queue.task_done()
