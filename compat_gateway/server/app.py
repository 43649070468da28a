"""FastAPI application exposing the OpenAI-compatible routes.

WHY: Clients written against the OpenAI API (SDKs, chat UIs, curl
scripts) need the same routes and wire formats in front of the inference
backend. FastAPI provides request parsing, OpenAPI documentation, and
streaming responses driven by async generators.

HOW: Each route builds backend inputs from its request model, calls the
backend through BackendClient, and reshapes the result with the core
modules: the streaming transcoder for ``stream: true``, the response
normalizer for full responses, and the transcription formatter for audio.

RULES:
- Errors are always returned as ``{"error": {"message", "type"}}``
- A backend failure before streaming starts is a JSON error, never a
  partial event stream
- Streaming responses always end with ``data: [DONE]``
- Each streaming request gets its own StreamState and BackendClient
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import base64
import logging
import math
import time
from typing import Annotated, Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from compat_gateway import __version__
from compat_gateway.backend.client import BackendClient
from compat_gateway.config import (
    CHAT_STRIP_REASONING,
    COMPLETION_STRIP_REASONING,
    DEFAULT_TRANSCRIPTION_MODEL,
    EVENT_STREAM_HEADERS,
    FLUSH_UNCLOSED_REASONING,
    HOST,
    LOG_LEVEL,
    PORT,
    REASONING_DELIMITER,
)
from compat_gateway.core.content_filter import ContentFilter
from compat_gateway.core.ir import (
    StreamKind,
    SubtitleDocument,
    SubtitleFormat,
    new_response_id,
    new_stream_state,
)
from compat_gateway.core.normalizer import normalize_response, strip_reasoning
from compat_gateway.core.transcoder import transcode_stream
from compat_gateway.core.transcription import (
    ResponseFormat,
    TimestampGranularity,
    format_transcription,
)
from compat_gateway.errors import GatewayError, InvalidRequestError, ServerError, error_body
from compat_gateway.formatters import FORMATTERS
from compat_gateway.server.models import (
    AssistantMessage,
    ChatChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    CompletionChoice,
    CompletionRequest,
    CompletionResponse,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    Usage,
)

logger = logging.getLogger(__name__)

_CHARS_PER_TOKEN = 4

app = FastAPI(
    title="Compat Gateway API",
    description=(
        "OpenAI-compatible chat completion, text completion, and audio "
        "transcription endpoints in front of a Workers AI inference backend. "
        "Supports streamed (server-sent events) and full responses, and "
        "SRT/WebVTT subtitle output for transcriptions."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    502: {"model": ErrorResponse, "description": "Backend failure"},
}


def get_backend_client() -> BackendClient:
    """Create a backend client for one request."""
    return BackendClient()


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(GatewayError)
async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    param = ".".join(loc) or None
    message = first.get("msg", "Invalid request")
    if param:
        message = "{}: {}".format(param, message)
    return JSONResponse(
        error_body(message, "invalid_request_error", param=param),
        status_code=400,
    )


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = ServerError()
    return JSONResponse(error.to_body(), status_code=error.status_code)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _estimate_tokens(text: str) -> int:
    """Rough token count at ~4 characters per token."""
    if not text:
        return 0
    return math.ceil(len(text) / _CHARS_PER_TOKEN)


def _build_usage(result: Any, prompt: str, completion: str) -> Usage:
    """Use the backend's usage block when present, else estimate."""
    reported = result.get("usage") if isinstance(result, dict) else None
    if isinstance(reported, dict):
        try:
            prompt_tokens = int(reported.get("prompt_tokens", 0))
            completion_tokens = int(reported.get("completion_tokens", 0))
            total = int(reported.get("total_tokens", prompt_tokens + completion_tokens))
            return Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=total,
            )
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed backend usage block: %r", reported)
    prompt_tokens = _estimate_tokens(prompt)
    completion_tokens = _estimate_tokens(completion)
    return Usage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
    )


async def _start_stream(
    model: str,
    inputs: Dict[str, Any],
    kind: StreamKind,
    strip_reasoning_preamble: bool,
) -> StreamingResponse:
    """Open the backend stream and wrap it in an SSE response.

    WHY: Opening the backend stream before constructing the response lets
    an early backend failure propagate as a JSON error instead of a
    half-started event stream.

    HOW: The backend client is entered manually because it must outlive
    this function; the frame generator closes it when the stream ends, and
    a background task closes it again (idempotently) in case the generator
    never ran.
    """
    client = get_backend_client()
    await client.__aenter__()
    try:
        chunks = await client.open_stream(model, inputs)
    except BaseException:
        await client.aclose()
        raise

    state = new_stream_state(model, kind)
    content_filter = None
    if strip_reasoning_preamble:
        content_filter = ContentFilter(state, REASONING_DELIMITER, FLUSH_UNCLOSED_REASONING)

    async def _frames() -> AsyncIterator[str]:
        try:
            async for frame in transcode_stream(chunks, state, content_filter):
                yield frame
        finally:
            await client.aclose()

    return StreamingResponse(
        _frames(),
        media_type="text/event-stream",
        headers=EVENT_STREAM_HEADERS,
        background=BackgroundTask(client.aclose),
    )


async def _run_backend(model: str, inputs: Dict[str, Any]) -> Any:
    async with get_backend_client() as client:
        return await client.run(model, inputs)


# ---------------------------------------------------------------------------
# Endpoints: Chat and text completions
# ---------------------------------------------------------------------------


@app.post(
    "/v1/chat/completions",
    response_model=ChatCompletionResponse,
    tags=["completions"],
    summary="Create a chat completion",
    description=(
        "Generate the next assistant message for a conversation. With "
        "``stream: true`` the response is a ``text/event-stream`` of "
        "``chat.completion.chunk`` objects ending with ``data: [DONE]``."
    ),
    responses=_ERROR_RESPONSES,
)
async def create_chat_completion(body: ChatCompletionRequest) -> Any:
    logger.info(
        "Chat completion request: model=%s messages=%d stream=%s",
        body.model, len(body.messages), body.stream,
    )
    inputs = body.to_backend_inputs()

    if body.stream:
        return await _start_stream(body.model, inputs, StreamKind.CHAT, CHAT_STRIP_REASONING)

    result = await _run_backend(body.model, inputs)
    text = normalize_response(result)
    if CHAT_STRIP_REASONING:
        text = strip_reasoning(text, REASONING_DELIMITER)

    return ChatCompletionResponse(
        id=new_response_id(StreamKind.CHAT),
        created=int(time.time()),
        model=body.model,
        choices=[ChatChoice(message=AssistantMessage(content=text))],
        usage=_build_usage(result, body.prompt_text(), text),
    )


@app.post(
    "/v1/completions",
    response_model=CompletionResponse,
    tags=["completions"],
    summary="Create a text completion",
    description=(
        "Complete a prompt. Reasoning preambles closed by the configured "
        "delimiter are removed. With ``stream: true`` the response is a "
        "``text/event-stream`` of ``text_completion`` objects."
    ),
    responses=_ERROR_RESPONSES,
)
async def create_completion(body: CompletionRequest) -> Any:
    logger.info(
        "Completion request: model=%s prompt_chars=%d stream=%s",
        body.model, len(body.prompt), body.stream,
    )
    inputs = body.to_backend_inputs()

    if body.stream:
        return await _start_stream(
            body.model, inputs, StreamKind.COMPLETION, COMPLETION_STRIP_REASONING
        )

    result = await _run_backend(body.model, inputs)
    text = normalize_response(result)
    if COMPLETION_STRIP_REASONING:
        text = strip_reasoning(text, REASONING_DELIMITER)

    return CompletionResponse(
        id=new_response_id(StreamKind.COMPLETION),
        created=int(time.time()),
        model=body.model,
        choices=[CompletionChoice(text=text)],
        usage=_build_usage(result, body.prompt, text),
    )


# ---------------------------------------------------------------------------
# Endpoints: Audio
# ---------------------------------------------------------------------------


def _audio_input(model: str, audio: bytes) -> Dict[str, Any]:
    """Encode audio the way the given speech model expects it."""
    if model.endswith("whisper-large-v3-turbo"):
        return {"audio": base64.b64encode(audio).decode("ascii")}
    return {"audio": list(audio)}


@app.post(
    "/v1/audio/transcriptions",
    tags=["audio"],
    summary="Transcribe audio",
    description=(
        "Upload an audio file and receive its transcription as JSON, "
        "verbose JSON, plain text, SRT (text/plain), or WebVTT (text/vtt). "
        "Word timestamps are grouped into segments at sentence ends or "
        "every ten words."
    ),
    responses=_ERROR_RESPONSES,
)
async def create_transcription(
    file: Annotated[UploadFile, File(description="Audio file to transcribe.")],
    model: Annotated[
        str,
        Form(description="Backend speech model identifier."),
    ] = DEFAULT_TRANSCRIPTION_MODEL,
    response_format: Annotated[
        ResponseFormat,
        Form(description="json, verbose_json, text, srt, or vtt."),
    ] = ResponseFormat.JSON,
    timestamp_granularities: Annotated[
        Optional[TimestampGranularity],
        Form(description="Timestamp detail for json output: word or segment."),
    ] = None,
    language: Annotated[
        Optional[str],
        Form(description="ISO 639-1 language hint, reported by verbose_json."),
    ] = None,
) -> Response:
    audio = await file.read()
    if not audio:
        raise InvalidRequestError("Uploaded audio file is empty", param="file")

    logger.info(
        "Transcription request: model=%s bytes=%d format=%s",
        model, len(audio), response_format.value,
    )
    result = await _run_backend(model, _audio_input(model, audio))
    output = format_transcription(result, response_format, timestamp_granularities, language)

    if isinstance(output.content, dict):
        return JSONResponse(output.content)
    return Response(content=output.content, media_type=output.media_type)


# ---------------------------------------------------------------------------
# Endpoints: Formats and health
# ---------------------------------------------------------------------------


@app.get(
    "/v1/formats",
    response_model=List[FormatInfo],
    tags=["audio"],
    summary="List subtitle formats",
    description="Returns the subtitle formats available as transcription response formats.",
)
async def list_formats() -> List[FormatInfo]:
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        empty = formatter.format(SubtitleDocument(segments=(), format=SubtitleFormat(key)))
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=empty.suffix,
            media_type=empty.media_type,
        ))
    return result


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api() -> None:
    """Entry point for the compat-gateway console script."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
