"""
Horde text-generation client.

    submit_and_await(spec, api_key) -> JobStatus

Submit, then hand the job id to a JobPoller until the job is terminal.
Every failure surfaces as a GatewayError subclass; nothing is retried.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from ..config.config_manager import HordeConfig, PollConfig
from ..errors import PollError, SerializationError, SubmitError
from .poller import JobPoller
from .schemas import JobSpec, JobStatus, SubmitResponse

logger = logging.getLogger(__name__)


class HordeClient:
    """Async client for the Horde submit / status / cancel endpoints."""

    def __init__(
        self,
        horde: HordeConfig,
        poll: PollConfig,
        http: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.horde = horde
        self.poll = poll
        self._client = http
        self._sleep = sleep
        self._clock = clock

    def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.horde.request_timeout_seconds)
            )
        return self._client

    def _headers(self, api_key: Optional[str] = None) -> dict:
        headers = {"Client-Agent": self.horde.client_agent}
        if api_key is not None:
            headers["apikey"] = api_key
        return headers

    # -- single calls ------------------------------------------------------

    async def submit(self, spec: JobSpec, api_key: Optional[str] = None) -> str:
        """POST the job spec.  Returns the job id."""
        try:
            body = spec.model_dump_json()
        except (ValueError, TypeError) as e:
            raise SerializationError(f"cannot encode job spec: {e}") from e

        headers = self._headers(api_key or self.horde.anonymous_api_key)
        headers["Content-Type"] = "application/json"
        try:
            resp = await self._client_instance().post(
                self.horde.submit_url, content=body, headers=headers
            )
        except httpx.HTTPError as e:
            raise SubmitError(f"submit to horde failed: {e}") from e

        if not resp.is_success:
            raise SubmitError(
                f"horde rejected job with HTTP {resp.status_code}: {resp.text.strip()}"
            )
        try:
            submitted = SubmitResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise SubmitError(f"malformed submit response: {e}") from e
        if not submitted.id:
            raise SubmitError(f"horde returned no job id: {submitted.message or resp.text.strip()}")

        logger.info(f"[Horde] Submitted job {submitted.id}  models={spec.models}")
        return submitted.id

    async def fetch_status(self, job_id: str) -> JobStatus:
        """GET the job status once."""
        try:
            resp = await self._client_instance().get(
                self.horde.status_url(job_id), headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise PollError(f"polling job {job_id} failed: {e}") from e

        if not resp.is_success:
            raise PollError(
                f"polling job {job_id} returned HTTP {resp.status_code}: {resp.text.strip()}"
            )
        try:
            return JobStatus.model_validate_json(resp.content)
        except ValidationError as e:
            raise PollError(f"malformed status for job {job_id}: {e}") from e

    async def cancel(self, job_id: str) -> None:
        """Best-effort DELETE of an in-flight job.  Failures are only logged."""
        try:
            resp = await self._client_instance().delete(
                self.horde.status_url(job_id), headers=self._headers()
            )
            logger.info(f"[Horde] Cancelled job {job_id}  HTTP {resp.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"[Horde] Could not cancel job {job_id}: {e}")

    # -- full round trip ---------------------------------------------------

    async def submit_and_await(self, spec: JobSpec, api_key: Optional[str] = None) -> JobStatus:
        job_id = await self.submit(spec, api_key)
        poller = JobPoller(
            job_id, self.fetch_status, self.poll, sleep=self._sleep, clock=self._clock
        )
        try:
            status = await poller.run()
        except asyncio.CancelledError:
            if self.poll.cancel_on_disconnect:
                await self.cancel(job_id)
            raise
        logger.info(
            f"[Horde] Job {job_id} done  polls={poller.attempts}  "
            f"generations={len(status.generations)}  kudos={status.kudos}"
        )
        return status

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
