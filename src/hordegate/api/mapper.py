"""
OpenAI <-> Horde schema mapping.

Four pure conversions.  The id generator and the clock are parameters so
callers (and tests) decide where ids and timestamps come from.
"""

import time
import uuid
from typing import Callable

from ..config.config_manager import GenerationConfig
from ..errors import EmptyResultError
from ..horde.schemas import Generation, JobParams, JobSpec, JobStatus
from .schemas import (
    ChatChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    CompletionChoice,
    CompletionRequest,
    CompletionResponse,
    Usage,
)

IdGenerator = Callable[[], str]
Clock = Callable[[], float]


def new_response_id() -> str:
    return str(uuid.uuid4())


def chat_to_job(req: ChatCompletionRequest, gen: GenerationConfig) -> JobSpec:
    # Only the messages and model are carried over; the output length is
    # always the configured chat constant.
    prompt = "".join(f"{m.role}: {m.content}\n" for m in req.messages)
    return JobSpec(
        prompt=prompt,
        models=[req.model],
        trusted_workers=gen.trusted_workers,
        params=JobParams(
            max_context_length=gen.max_context_length,
            max_length=gen.chat_max_length,
        ),
    )


def completion_to_job(req: CompletionRequest, gen: GenerationConfig) -> JobSpec:
    max_length = req.max_tokens if req.max_tokens is not None else gen.default_max_length
    return JobSpec(
        prompt=req.prompt,
        models=[req.model],
        trusted_workers=gen.trusted_workers,
        params=JobParams(
            max_context_length=gen.max_context_length,
            max_length=max_length,
        ),
    )


def first_generation(status: JobStatus) -> Generation:
    """Return the first generation, or raise EmptyResultError if there is none."""
    if not status.generations:
        raise EmptyResultError("horde job completed without any generations")
    return status.generations[0]


def job_to_chat(
    status: JobStatus,
    new_id: IdGenerator = new_response_id,
    now: Clock = time.time,
) -> ChatCompletionResponse:
    """
    Wrap the first generation as a single assistant message.

    Usage counters are character lengths of the generated text, not token
    counts: prompt and completion both report ``len(text)``.
    """
    text = first_generation(status).text
    return ChatCompletionResponse(
        id=new_id(),
        created=int(now()),
        choices=[
            ChatChoice(
                index=0,
                message=ChatMessage(role="assistant", content=text),
                finish_reason="stop",
            )
        ],
        usage=Usage(
            prompt_tokens=len(text),
            completion_tokens=len(text),
            total_tokens=len(text) + len(text),
        ),
    )


def job_to_completion(
    status: JobStatus,
    model_name: str = "davinci-codex",
    new_id: IdGenerator = new_response_id,
    now: Clock = time.time,
) -> CompletionResponse:
    text = first_generation(status).text
    return CompletionResponse(
        id=new_id(),
        created=int(now()),
        model=model_name,
        choices=[CompletionChoice(text=text, index=0, logprobs=None, finish_reason="stop")],
        usage=Usage(),
    )
