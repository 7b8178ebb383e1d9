"""
Poll loop for one submitted Horde job.

JobPoller owns: the job's state, the attempt counter, the timing caps.
It does NOT know about HTTP -- it receives a `fetch` coroutine function
from the outside, plus `sleep` and `clock` so tests can skip real delays.

    fetch(job_id: str) -> JobStatus   # raises PollError on failure
"""

import asyncio
import enum
import logging
import time
from typing import Awaitable, Callable, Optional

from ..config.config_manager import PollConfig
from ..errors import FaultedJobError, PollError, PollTimeoutError
from .schemas import JobStatus

logger = logging.getLogger(__name__)


class JobState(str, enum.Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAULTED = "faulted"
    FAILED = "failed"


TERMINAL_STATES = (JobState.COMPLETED, JobState.FAULTED, JobState.FAILED)


class JobPoller:
    """
    Drive a submitted job to a terminal state.

    Every iteration sleeps ``interval_seconds`` and then issues exactly one
    status fetch.  There is no backoff and no retry on fetch failure.

    Parameters
    ----------
    job_id : str
        Handle returned by the submit call.
    fetch : async callable(str) -> JobStatus
        One status request.
    config : PollConfig
        Interval and caps.
    sleep, clock : callables
        ``asyncio.sleep`` and ``time.monotonic`` unless injected.
    """

    def __init__(
        self,
        job_id: str,
        fetch: Callable[[str], Awaitable[JobStatus]],
        config: PollConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.job_id = job_id
        self._fetch = fetch
        self._config = config
        self._sleep = sleep
        self._clock = clock
        self.state = JobState.SUBMITTED
        self.attempts = 0
        self.last_status: Optional[JobStatus] = None
        self._warned_impossible = False

    def _transition(self, new_state: JobState):
        logger.debug(f"[Poll] {self.job_id}  {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _caps_reached(self, elapsed: float) -> bool:
        cfg = self._config
        if cfg.max_attempts is not None and self.attempts >= cfg.max_attempts:
            return True
        if cfg.max_duration_seconds is not None and elapsed >= cfg.max_duration_seconds:
            return True
        return False

    async def run(self) -> JobStatus:
        """Poll until done.  Returns the final status or raises a GatewayError."""
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"poller for {self.job_id} already {self.state.value}")

        started = self._clock()
        self._transition(JobState.POLLING)
        try:
            while True:
                await self._sleep(self._config.interval_seconds)
                self.attempts += 1
                status = await self._fetch(self.job_id)
                self.last_status = status

                logger.debug(
                    f"[Poll] {self.job_id}  attempt={self.attempts}  done={status.done}  "
                    f"queue_position={status.queue_position}  wait_time={status.wait_time}"
                )

                if status.faulted:
                    self._transition(JobState.FAULTED)
                    raise FaultedJobError(self.job_id)
                if status.done:
                    self._transition(JobState.COMPLETED)
                    return status
                if not status.is_possible and not self._warned_impossible:
                    logger.warning(
                        f"[Poll] {self.job_id}  horde reports no worker can serve this job"
                    )
                    self._warned_impossible = True

                elapsed = self._clock() - started
                if self._caps_reached(elapsed):
                    self._transition(JobState.FAILED)
                    raise PollTimeoutError(self.job_id, self.attempts, elapsed)
        except PollError:
            self._transition(JobState.FAILED)
            raise
        except asyncio.CancelledError:
            logger.info(f"[Poll] {self.job_id}  cancelled after {self.attempts} polls")
            self._transition(JobState.FAILED)
            raise
