"""
HTTP route definitions.

Knows only about schemas and the GatewayService interface.
Does NOT import the horde client or Config.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Type, TypeVar

from fastapi import APIRouter, Header, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from .schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    CompletionRequest,
    CompletionResponse,
)
from .service import GatewayService

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

DISCONNECT_CHECK_SECONDS = 0.5
CLIENT_CLOSED_REQUEST = 499


class ClientDisconnected(Exception):
    """The inbound connection went away while the horde job was in flight."""


async def decode_body(request: Request, model: Type[M]) -> M:
    """
    Decode the raw request body as JSON into ``model``.

    The Content-Type header is not consulted; any body that parses is accepted.
    """
    body = await request.body()
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        errors = [{**err, "loc": ("body", *err["loc"])} for err in e.errors()]
        raise RequestValidationError(errors, body=body) from e


async def run_until_disconnected(request: Request, work: Awaitable[T]) -> T:
    """
    Await ``work`` while watching the inbound connection.

    If the client disconnects first, the work is cancelled (which also
    cancels the downstream job) and ClientDisconnected is raised.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_CHECK_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("[API] Client disconnected, cancelling horde wait")
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


def create_router(service: GatewayService) -> APIRouter:
    """Build an APIRouter wired to the given GatewayService."""
    router = APIRouter()
    watch_disconnect = service.config.poll.cancel_on_disconnect

    async def _run(request: Request, work: Awaitable[T]) -> T:
        if watch_disconnect:
            return await run_until_disconnected(request, work)
        return await work

    @router.post(
        "/v1/chat/completions",
        response_model=ChatCompletionResponse,
        responses={CLIENT_CLOSED_REQUEST: {"description": "Client closed request"}},
    )
    async def chat_completions(
        request: Request,
        authorization: Optional[str] = Header(default=None),
    ):
        """Run a chat completion as a horde job and wait for it."""
        req = await decode_body(request, ChatCompletionRequest)
        api_key = service.api_key_from_header(authorization)
        try:
            return await _run(request, service.chat(req, api_key))
        except ClientDisconnected:
            return Response(status_code=CLIENT_CLOSED_REQUEST)

    @router.post(
        "/v1/completions",
        response_model=CompletionResponse,
        response_model_exclude_none=True,
        responses={CLIENT_CLOSED_REQUEST: {"description": "Client closed request"}},
    )
    async def completions(
        request: Request,
        authorization: Optional[str] = Header(default=None),
    ):
        """Run a text completion as a horde job and wait for it."""
        req = await decode_body(request, CompletionRequest)
        api_key = service.api_key_from_header(authorization)
        try:
            return await _run(request, service.complete(req, api_key))
        except ClientDisconnected:
            return Response(status_code=CLIENT_CLOSED_REQUEST)

    @router.get("/health")
    async def health():
        return {"status": "ok"}

    return router
