"""Sequencing of article check jobs: one active job and a FIFO queue."""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from cachetools import TTLCache

from ..errors import SequencerBusyError
from ..models.job import Job, JobResult, JobState

logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 60.0

JobRunner = Callable[[Job], Awaitable[JobResult]]


class TimestampedLock:
    """Lock that remembers when it was taken and expires after ``timeout``.

    A holder that never releases cannot block the sequencer for longer than
    the timeout.
    """

    def __init__(self, timeout: float = LOCK_TIMEOUT, clock: Callable[[], float] = time.monotonic):
        self._timeout = timeout
        self._clock = clock
        self._acquired_at: Optional[float] = None

    @property
    def is_locked(self) -> bool:
        if self._acquired_at is None:
            return False
        if self._clock() - self._acquired_at > self._timeout:
            logger.warning("⚠️ Sequencer lock expired, releasing it")
            self._acquired_at = None
            return False
        return True

    def acquire(self) -> bool:
        if self.is_locked:
            return False
        self._acquired_at = self._clock()
        return True

    def release(self) -> None:
        self._acquired_at = None
        logger.debug("Released sequencer lock")


class JobSequencer:
    """Runs submitted jobs strictly one at a time in arrival order."""

    def __init__(
        self,
        lock: Optional[TimestampedLock] = None,
        history_size: int = 256,
        history_ttl: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        """Initialize the sequencer.

        Args:
            lock: Lock guarding queue mutations
            history_size: Finished jobs kept for status lookups
            history_ttl: Seconds a finished job stays available
            clock: Time source for the history cache
            id_factory: Generates job identifiers
        """
        self._lock = lock or TimestampedLock(clock=clock)
        self._history: TTLCache = TTLCache(maxsize=history_size, ttl=history_ttl, timer=clock)
        self._new_id = id_factory
        self._current: Optional[Job] = None
        self._queue: List[Job] = []

    @contextmanager
    def _locked(self, action: str) -> Iterator[None]:
        if not self._lock.acquire():
            logger.error(f"❌ Failed to acquire sequencer lock for {action}")
            raise SequencerBusyError(f"Failed to acquire lock for {action}")
        try:
            yield
        finally:
            self._lock.release()

    @property
    def current_job(self) -> Optional[Job]:
        return self._current

    @property
    def queue(self) -> List[Job]:
        return list(self._queue)

    def add_job(self, filename: str, content: str) -> Job:
        """Register a submission; it becomes active if nothing else is."""
        with self._locked("adding job"):
            job = Job(
                job_id=self._new_id(),
                filename=filename,
                content=content,
                queue_position=len(self._queue),
            )
            if self._current is None:
                job.mark_processing()
                self._current = job
                logger.info(f"🚀 Starting job {job.job_id} for {filename} immediately")
            else:
                self._queue.append(job)
                logger.info(f"📥 Queued job {job.job_id} for {filename} at position {job.queue_position}")
            return job

    def complete_job(self, job_id: str, result: JobResult) -> Optional[Job]:
        """Finish the active job and promote the next queued one.

        Returns:
            The newly active job, or None when the queue is empty

        Raises:
            ValueError: If ``job_id`` is not the active job
        """
        with self._locked("completing job"):
            if self._current is None or self._current.job_id != job_id:
                current_id = self._current.job_id if self._current else None
                logger.error(f"❌ Job {job_id} is not currently processing (active: {current_id})")
                raise ValueError(f"Job {job_id} not found or not currently processing")

            finished = self._current
            finished.mark_finished(result)
            self._history[finished.job_id] = finished
            logger.info(f"✅ Completed job {job_id} with status {finished.state.value}")

            if not self._queue:
                self._current = None
                logger.info("No more jobs in queue")
                return None

            self._current = self._queue.pop(0)
            self._current.mark_processing()
            for position, job in enumerate(self._queue):
                job.queue_position = position
            logger.info(
                f"🚀 Starting next job {self._current.job_id}, "
                f"{len(self._queue)} remaining in queue"
            )
            return self._current

    def get_job(self, job_id: str) -> Optional[Job]:
        """Look up an active, queued or recently finished job."""
        if self._current is not None and self._current.job_id == job_id:
            return self._current
        for job in self._queue:
            if job.job_id == job_id:
                return job
        return self._history.get(job_id)

    def status(self) -> Dict[str, Any]:
        """Snapshot of the active job and the queue for API responses."""
        return {
            'current_job': self._current.to_dict() if self._current else None,
            'queue': [job.to_dict() for job in self._queue],
        }

    async def run(self, job: Job, runner: JobRunner) -> None:
        """Process ``job`` if it is active, then drain the queue.

        Jobs that are still queued return immediately; they are picked up by
        whichever caller is draining the active job.
        """
        if job.state is not JobState.PROCESSING or self._current is not job:
            logger.debug(f"Job {job.job_id} is {job.state.value}, leaving it to the active runner")
            return

        active: Optional[Job] = job
        while active is not None:
            try:
                result = await runner(active)
            except Exception as e:
                logger.error(f"❌ Job {active.job_id} failed: {e}", exc_info=True)
                result = JobResult(
                    status="failure",
                    message=f"An error occurred while checking the article: {e}",
                    details={'error': str(e)},
                )
            active = self.complete_job(active.job_id, result)
