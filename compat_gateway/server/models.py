"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request parsing,
response serialization, and automatic OpenAPI documentation. The shapes
follow the OpenAI API so existing client libraries work unchanged.

HOW: One request model per JSON endpoint, with a to_backend_inputs()
method that builds the backend's input object. Response models mirror the
OpenAI objects. All fields carry Field descriptions for the /docs UI.

RULES:
- Optional generation parameters are only forwarded when set
- Unknown request fields are ignored, not rejected
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from compat_gateway.config import DEFAULT_CHAT_MODEL, DEFAULT_COMPLETION_MODEL

# Models that take their prompt in an ``input`` field instead of ``prompt``.
INPUT_FIELD_MODELS = frozenset({"@cf/openai/gpt-oss-120b", "@cf/openai/gpt-oss-20b"})

_GENERATION_PARAMS = (
    "max_tokens",
    "temperature",
    "top_p",
    "presence_penalty",
    "frequency_penalty",
    "stop",
    "seed",
)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class GenerationParams(BaseModel):
    """Sampling parameters shared by chat and text completions."""

    stream: bool = Field(default=False, description="Stream the response as server-sent events.")
    max_tokens: Optional[int] = Field(default=None, ge=1, description="Maximum tokens to generate.")
    temperature: Optional[float] = Field(default=None, ge=0, le=2, description="Sampling temperature.")
    top_p: Optional[float] = Field(default=None, ge=0, le=1, description="Nucleus sampling mass.")
    presence_penalty: Optional[float] = Field(default=None, ge=-2, le=2, description="Presence penalty.")
    frequency_penalty: Optional[float] = Field(default=None, ge=-2, le=2, description="Frequency penalty.")
    stop: Optional[Union[str, List[str]]] = Field(default=None, description="Stop sequence(s).")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducible sampling.")

    def _generation_inputs(self) -> Dict[str, Any]:
        inputs = {}  # type: Dict[str, Any]
        for name in _GENERATION_PARAMS:
            value = getattr(self, name)
            if value is not None:
                inputs[name] = value
        return inputs


class ChatMessage(BaseModel):
    role: str = Field(description="Message author role: system, user, assistant, or tool.")
    content: Optional[Union[str, List[Dict[str, Any]]]] = Field(
        default=None,
        description="Message text, or a list of typed content parts.",
    )
    name: Optional[str] = Field(default=None, description="Optional author name.")


class ChatCompletionRequest(GenerationParams):
    """Body of POST /v1/chat/completions."""

    model: str = Field(default=DEFAULT_CHAT_MODEL, description="Backend model identifier.")
    messages: List[ChatMessage] = Field(min_length=1, description="Conversation so far.")

    def to_backend_inputs(self) -> Dict[str, Any]:
        inputs = {
            "messages": [m.model_dump(exclude_none=True) for m in self.messages],
        }  # type: Dict[str, Any]
        inputs.update(self._generation_inputs())
        return inputs

    def prompt_text(self) -> str:
        """Concatenated message text, used for usage estimates."""
        parts = []
        for message in self.messages:
            if isinstance(message.content, str):
                parts.append(message.content)
            elif message.content:
                parts.extend(
                    p.get("text", "") for p in message.content if isinstance(p.get("text"), str)
                )
        return "\n".join(parts)


class CompletionRequest(GenerationParams):
    """Body of POST /v1/completions."""

    model: str = Field(default=DEFAULT_COMPLETION_MODEL, description="Backend model identifier.")
    prompt: str = Field(min_length=1, description="Prompt text to complete.")

    def to_backend_inputs(self) -> Dict[str, Any]:
        key = "input" if self.model in INPUT_FIELD_MODELS else "prompt"
        inputs = {key: self.prompt}  # type: Dict[str, Any]
        inputs.update(self._generation_inputs())
        return inputs


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class Usage(BaseModel):
    prompt_tokens: int = Field(description="Tokens in the prompt.")
    completion_tokens: int = Field(description="Tokens in the generated text.")
    total_tokens: int = Field(description="Sum of prompt and completion tokens.")


class AssistantMessage(BaseModel):
    role: str = Field(default="assistant", description="Always 'assistant'.")
    content: str = Field(description="Generated message text.")


class ChatChoice(BaseModel):
    index: int = Field(default=0, description="Choice index.")
    message: AssistantMessage = Field(description="The generated message.")
    finish_reason: Optional[str] = Field(default="stop", description="Why generation stopped.")


class ChatCompletionResponse(BaseModel):
    """Non-streamed chat completion (``object: chat.completion``)."""

    id: str = Field(description="Response identifier, ``chatcmpl-`` prefixed.")
    object: str = Field(default="chat.completion", description="Object type.")
    created: int = Field(description="Creation time (Unix epoch seconds).")
    model: str = Field(description="Model that produced the response.")
    choices: List[ChatChoice] = Field(description="Generated choices (always one).")
    usage: Usage = Field(description="Token accounting.")


class CompletionChoice(BaseModel):
    index: int = Field(default=0, description="Choice index.")
    text: str = Field(description="Generated text.")
    logprobs: Optional[Any] = Field(default=None, description="Always null.")
    finish_reason: Optional[str] = Field(default="stop", description="Why generation stopped.")


class CompletionResponse(BaseModel):
    """Non-streamed text completion (``object: text_completion``)."""

    id: str = Field(description="Response identifier, ``cmpl-`` prefixed.")
    object: str = Field(default="text_completion", description="Object type.")
    created: int = Field(description="Creation time (Unix epoch seconds).")
    model: str = Field(description="Model that produced the response.")
    choices: List[CompletionChoice] = Field(description="Generated choices (always one).")
    usage: Usage = Field(description="Token accounting.")


class ErrorBody(BaseModel):
    message: str = Field(description="Human-readable error description.")
    type: str = Field(description="Error category, e.g. 'invalid_request_error'.")
    code: Optional[str] = Field(default=None, description="Machine-readable error code.")
    param: Optional[str] = Field(default=None, description="Request parameter at fault.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - Every non-2xx JSON response uses this schema
    """

    error: ErrorBody


class FormatInfo(BaseModel):
    key: str = Field(description="Value to pass as response_format.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '.srt').")
    media_type: str = Field(description="Content type of the rendered body.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
