"""
API data contracts (OpenAI-compatible shapes).

Pure Pydantic models, no business logic, no framework imports.
Unknown request fields are accepted and ignored.
"""

from typing import List, Optional, Union, Any
from pydantic import BaseModel, Field

from ..utils.models import NullAsDefaultModel


class ChatMessage(NullAsDefaultModel):
    role: str = ""
    content: str = ""


class ChatCompletionRequest(NullAsDefaultModel):
    model: str = ""
    messages: List[ChatMessage] = Field(default_factory=list)


class CompletionRequest(NullAsDefaultModel):
    model: str = ""
    prompt: str = ""
    max_tokens: Optional[int] = Field(default=None, description="Forwarded as the horde max_length")
    temperature: float = 1.0
    top_p: float = 1.0
    n: int = 1
    stream: bool = False
    logprobs: Optional[int] = None
    stop: Optional[Union[str, List[str]]] = None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str = "stop"


class ChatCompletionResponse(BaseModel):
    id: str
    object: str = "chat.completion"
    created: int
    choices: List[ChatChoice]
    usage: Usage


class CompletionChoice(BaseModel):
    text: str
    index: int = 0
    logprobs: Optional[Any] = None
    finish_reason: str = "stop"


class CompletionResponse(BaseModel):
    id: str
    object: str = "text.completion"
    created: int
    model: str
    choices: List[CompletionChoice]
    usage: Usage
