"""
Horde text-generation wire contracts.

Pure Pydantic models.  Every field has a zero-value default so that partial
or extended payloads from the Horde still decode.
"""

from typing import List, Optional, Union
from pydantic import BaseModel, Field

from ..utils.models import NullAsDefaultModel


class JobParams(BaseModel):
    max_context_length: int
    max_length: int


class JobSpec(BaseModel):
    prompt: str
    models: List[str]
    trusted_workers: bool = False
    params: JobParams


class SubmitResponse(NullAsDefaultModel):
    id: str = ""
    message: Optional[str] = None


class Generation(NullAsDefaultModel):
    worker_id: str = ""
    worker_name: str = ""
    model: str = ""
    state: str = ""
    text: str = ""
    seed: Optional[Union[int, str]] = None


class JobStatus(NullAsDefaultModel):
    finished: int = 0
    processing: int = 0
    restarted: int = 0
    waiting: int = 0
    done: bool = False
    faulted: bool = False
    wait_time: int = 0
    queue_position: int = 0
    kudos: float = Field(default=0.0, description="Reward spent on the job")
    is_possible: bool = True
    generations: List[Generation] = Field(default_factory=list)
