import asyncio

import pytest

from hordegate.config.config_manager import PollConfig
from hordegate.errors import FaultedJobError, PollError, PollTimeoutError
from hordegate.horde.poller import JobPoller, JobState
from hordegate.horde.schemas import JobStatus

from conftest import status_payload


class ScriptedFetch:
    def __init__(self, events, statuses):
        self.events = events
        self.statuses = list(statuses)

    async def __call__(self, job_id):
        self.events.append(("fetch", job_id))
        item = self.statuses.pop(0)
        if isinstance(item, Exception):
            raise item
        return JobStatus(**item)


def _poller(statuses, config=None, events=None, clock=None):
    events = [] if events is None else events
    now = {"t": 0.0}

    async def sleep(seconds):
        events.append(("sleep", seconds))
        now["t"] += seconds

    fetch = ScriptedFetch(events, statuses)
    poller = JobPoller("job-1", fetch, config or PollConfig(), sleep=sleep,
                       clock=clock or (lambda: now["t"]))
    return poller, events


@pytest.mark.asyncio
async def test_not_done_then_done_stops_after_second_fetch():
    poller, events = _poller([
        status_payload(done=False),
        status_payload(done=True, texts=["hi"]),
        status_payload(done=True, texts=["never fetched"]),
    ])
    status = await poller.run()

    assert status.generations[0].text == "hi"
    assert [e for e in events if e[0] == "fetch"] == [("fetch", "job-1")] * 2
    # a sleep always separates consecutive fetches
    assert events == [("sleep", 2.0), ("fetch", "job-1"), ("sleep", 2.0), ("fetch", "job-1")]
    assert poller.state == JobState.COMPLETED
    assert poller.attempts == 2


@pytest.mark.asyncio
async def test_faulted_status_is_terminal():
    poller, events = _poller([status_payload(done=False), status_payload(faulted=True)])
    with pytest.raises(FaultedJobError):
        await poller.run()
    assert poller.state == JobState.FAULTED
    assert poller.attempts == 2


@pytest.mark.asyncio
async def test_fetch_error_aborts_without_retry():
    poller, events = _poller([PollError("boom"), status_payload(done=True, texts=["x"])])
    with pytest.raises(PollError):
        await poller.run()
    assert poller.state == JobState.FAILED
    assert len([e for e in events if e[0] == "fetch"]) == 1


@pytest.mark.asyncio
async def test_attempt_cap_raises_timeout():
    cfg = PollConfig(max_attempts=3, max_duration_seconds=None)
    poller, events = _poller([status_payload(done=False)] * 5, config=cfg)
    with pytest.raises(PollTimeoutError) as info:
        await poller.run()
    assert info.value.attempts == 3
    assert poller.state == JobState.FAILED


@pytest.mark.asyncio
async def test_duration_cap_raises_timeout():
    cfg = PollConfig(interval_seconds=2.0, max_duration_seconds=5.0)
    poller, events = _poller([status_payload(done=False)] * 10, config=cfg)
    with pytest.raises(PollTimeoutError):
        await poller.run()
    # 2s, 4s, 6s >= 5s
    assert poller.attempts == 3


@pytest.mark.asyncio
async def test_many_iterations_without_real_delay():
    statuses = [status_payload(done=False)] * 200 + [status_payload(done=True, texts=["late"])]
    cfg = PollConfig(max_duration_seconds=None)
    poller, events = _poller(statuses, config=cfg)
    status = await poller.run()
    assert status.generations[0].text == "late"
    assert poller.attempts == 201


@pytest.mark.asyncio
async def test_cancellation_marks_failed():
    started = asyncio.Event()

    async def fetch(job_id):
        return JobStatus(**status_payload(done=False))

    async def sleep(seconds):
        started.set()
        await asyncio.Event().wait()

    poller = JobPoller("job-1", fetch, PollConfig(), sleep=sleep)
    task = asyncio.ensure_future(poller.run())
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert poller.state == JobState.FAILED


@pytest.mark.asyncio
async def test_poller_cannot_be_rerun():
    poller, _ = _poller([status_payload(done=True, texts=["x"])])
    await poller.run()
    with pytest.raises(RuntimeError):
        await poller.run()
