import json

import httpx
import pytest

from hordegate.api.service import GatewayService
from hordegate.config.config_manager import Config
from hordegate.horde.client import HordeClient


def status_payload(done=False, faulted=False, texts=(), **extra):
    body = {
        "finished": len(texts) if done else 0,
        "processing": 0 if done else 1,
        "restarted": 0,
        "waiting": 0,
        "done": done,
        "faulted": faulted,
        "wait_time": 0 if done else 4,
        "queue_position": 0,
        "kudos": 12.0 if done else 0.0,
        "is_possible": True,
        "generations": [
            {
                "worker_id": f"w{i}",
                "worker_name": f"worker-{i}",
                "model": "m",
                "state": "ok",
                "text": text,
                "seed": 42,
            }
            for i, text in enumerate(texts)
        ],
    }
    body.update(extra)
    return body


class FakeHorde:
    """In-memory stand-in for the Horde, served through httpx.MockTransport."""

    def __init__(self, statuses=(), job_id="job-1", submit_status=202, submit_body=None,
                 submit_error=None, poll_error=None):
        self.statuses = list(statuses)
        self.job_id = job_id
        self.submit_status = submit_status
        self.submit_body = submit_body
        self.submit_error = submit_error
        self.poll_error = poll_error
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            if self.submit_error is not None:
                raise self.submit_error
            if self.submit_body is not None:
                return httpx.Response(self.submit_status, content=self.submit_body)
            return httpx.Response(self.submit_status, json={"id": self.job_id, "message": ""})
        if request.method == "GET":
            if self.poll_error is not None:
                raise self.poll_error
            return httpx.Response(200, json=self.statuses.pop(0))
        if request.method == "DELETE":
            return httpx.Response(200, json=status_payload(faulted=False))
        return httpx.Response(405)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def by_method(self, method):
        return [r for r in self.requests if r.method == method]

    def submitted_spec(self) -> dict:
        return json.loads(self.by_method("POST")[0].content)


class FakeTime:
    """Virtual clock advanced only by the injected sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def clock(self):
        return self.now


@pytest.fixture
def config():
    cfg = Config()
    cfg.logging.log_dir = ""
    return cfg


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def make_client(config, fake_time):
    def _make(fake: FakeHorde) -> HordeClient:
        http = httpx.AsyncClient(transport=fake.transport())
        return HordeClient(config.horde, config.poll, http=http,
                           sleep=fake_time.sleep, clock=fake_time.clock)
    return _make


@pytest.fixture
def make_service(config, make_client):
    def _make(fake: FakeHorde) -> GatewayService:
        return GatewayService(config, client=make_client(fake),
                              new_id=lambda: "resp-1", now=lambda: 1700000000.5)
    return _make
