"""In-process registry of background transcription tasks.

One ``asyncio.Task`` per transcript id, held for the lifetime of the
process.  No broker is involved: work is lost if the process dies.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Coroutine, Dict, Optional

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Tracks running tasks by job id. Finished tasks remove themselves."""

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, job_id: str, coro: Coroutine) -> asyncio.Task:
        """Schedule ``coro`` on the running loop and remember it under ``job_id``."""
        if job_id in self._tasks:
            coro.close()
            raise ValueError(f"Job {job_id} already has a running task")
        task = asyncio.get_running_loop().create_task(coro, name=f"transcript-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda t: self._on_done(job_id, t))
        logger.debug("Spawned task for job %s", job_id)
        return task

    def get(self, job_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(job_id)

    def cancel(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        if task is None or task.done():
            return False
        logger.info("Cancelling task for job %s", job_id)
        return task.cancel()

    async def wait(self, job_id: str) -> None:
        """Wait for the job's task to finish. Its outcome is not re-raised."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})

    async def shutdown(self) -> None:
        """Cancel everything still running and wait for it to unwind."""
        pending = [t for t in self._tasks.values() if not t.done()]
        if not pending:
            return
        logger.info("Cancelling %d pending transcription task(s)", len(pending))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _on_done(self, job_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(job_id) is task:
            del self._tasks[job_id]
        if task.cancelled():
            logger.info("Task for job %s was cancelled", job_id)
        elif task.exception() is not None:
            logger.error("Task for job %s crashed", job_id, exc_info=task.exception())
