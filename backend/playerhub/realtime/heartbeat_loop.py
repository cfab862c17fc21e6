"""Single scheduling loop for heartbeats and periodic database writes.

Heartbeat snapshots are queued and applied one at a time; between them the
loop wakes on the flush interval, runs the play-time pass and persists the
database if anything changed. Keeping both on one task means the session
table only ever has one writer on the event loop.
"""

import asyncio
import logging

from playerhub.core.errors import StoreWriteError
from playerhub.core.logging_setup import log_failure
from playerhub.services.controller import PlayerController
from playerhub.services.session_service import HeartbeatReport

logger = logging.getLogger("playerhub.loop")

MIN_FLUSH_INTERVAL_SECONDS = 0.05


class HeartbeatLoop:
    def __init__(
        self,
        controller: PlayerController,
        flush_interval_seconds: float,
        persist_timeout_seconds: float,
        queue_size: int = 4,
    ) -> None:
        self.controller = controller
        self.flush_interval_seconds = max(MIN_FLUSH_INTERVAL_SECONDS, float(flush_interval_seconds))
        self.persist_timeout_seconds = max(0.1, float(persist_timeout_seconds))
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, int(queue_size)))
        self._task: asyncio.Task | None = None
        self._persist_task: asyncio.Future | None = None
        self.dropped_heartbeats = 0
        self.last_report: HeartbeatReport | None = None

    @property
    def queue_size(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, players: object) -> bool:
        """Queues a heartbeat snapshot; a full queue drops its oldest snapshot."""
        dropped = False
        while True:
            try:
                self._queue.put_nowait(players)
                return not dropped
            except asyncio.QueueFull:
                try:
                    self._queue.get_nowait()
                except asyncio.QueueEmpty:
                    continue
                dropped = True
                self.dropped_heartbeats += 1
                logger.warning("Heartbeat queue full, dropping the oldest snapshot")

    def process_heartbeat(self, players: object) -> HeartbeatReport | None:
        report = self.controller.sessions.process_heartbeat(players)
        if report is not None:
            self.last_report = report
        return report

    def _persist_in_flight(self) -> bool:
        task = self._persist_task
        if task is None:
            return False
        if not task.done():
            return True
        self._persist_task = None
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Timed out players database write finished with error: %s", task.exception())
        return False

    async def flush(self) -> bool:
        state = self.controller.state
        if not state.is_dirty:
            return True
        if self._persist_in_flight():
            logger.warning("Previous players database write still running, skipping this flush")
            return False
        marker = state.dirty_marker()
        snapshot = self.controller.store.snapshot()
        task = asyncio.ensure_future(asyncio.to_thread(self.controller.store.persist, snapshot))
        self._persist_task = task
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.persist_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "Timed out saving players database after %.1fs, will retry",
                self.persist_timeout_seconds,
            )
            return False
        except StoreWriteError as exc:
            self._persist_task = None
            log_failure(
                logger,
                "Failed to save players database with error: %s",
                exc,
                verbose=self.controller.settings.verbose,
            )
            return False
        self._persist_task = None
        state.clear_dirty(marker)
        return True

    async def run_cycle(self) -> bool:
        try:
            self.controller.playtime.process_active()
        except Exception:
            logger.exception("Failed to process active players")
        return await self.flush()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_cycle_at = loop.time() + self.flush_interval_seconds
        while True:
            timeout = max(0.0, next_cycle_at - loop.time())
            try:
                players = await asyncio.wait_for(self._queue.get(), timeout=timeout)
            except asyncio.TimeoutError:
                await self.run_cycle()
                next_cycle_at = loop.time() + self.flush_interval_seconds
                continue
            try:
                self.process_heartbeat(players)
            except Exception:
                logger.exception("Unexpected heartbeat failure")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._persist_task is not None and not self._persist_task.done():
            await asyncio.wait([self._persist_task])
        while not self._queue.empty():
            self.process_heartbeat(self._queue.get_nowait())
        await self.flush()
