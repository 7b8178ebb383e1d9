"""
Gateway execution interface.

This is the single contact point between the HTTP layer and the Horde.
Routes call `GatewayService.chat()` / `GatewayService.complete()` and
nothing in the API layer talks to HordeClient directly.

To swap the downstream service, change only this file.
"""

import logging
import time
from typing import Optional

from ..config.config_manager import Config
from ..horde.client import HordeClient
from . import mapper
from .schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    CompletionRequest,
    CompletionResponse,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_api_key(authorization: Optional[str], placeholder: str) -> str:
    """Strip a ``Bearer `` prefix; fall back to the placeholder key when absent."""
    if not authorization:
        return placeholder
    if authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):]
    return authorization


class GatewayService:
    """Thin adapter: map the request, run the horde job, map the result."""

    def __init__(
        self,
        config: Config,
        client: Optional[HordeClient] = None,
        new_id: mapper.IdGenerator = mapper.new_response_id,
        now: mapper.Clock = time.time,
    ):
        self._config = config
        self._client = client or HordeClient(config.horde, config.poll)
        self._new_id = new_id
        self._now = now

    @property
    def config(self) -> Config:
        return self._config

    def api_key_from_header(self, authorization: Optional[str]) -> str:
        return extract_api_key(authorization, self._config.horde.anonymous_api_key)

    async def chat(self, req: ChatCompletionRequest, api_key: str) -> ChatCompletionResponse:
        spec = mapper.chat_to_job(req, self._config.generation)
        logger.info(f"[API] chat  model={req.model}  messages={len(req.messages)}")
        status = await self._client.submit_and_await(spec, api_key)
        return mapper.job_to_chat(status, new_id=self._new_id, now=self._now)

    async def complete(self, req: CompletionRequest, api_key: str) -> CompletionResponse:
        spec = mapper.completion_to_job(req, self._config.generation)
        logger.info(
            f"[API] completion  model={req.model}  max_length={spec.params.max_length}"
        )
        status = await self._client.submit_and_await(spec, api_key)
        return mapper.job_to_completion(
            status,
            model_name=self._config.generation.completion_model_name,
            new_id=self._new_id,
            now=self._now,
        )

    async def aclose(self):
        await self._client.aclose()
