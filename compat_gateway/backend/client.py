"""Async HTTP client for the Workers AI inference REST API.

WHY: Every gateway endpoint ends in one backend call, either a single
JSON round trip or a streamed event body. This module hides the URL
layout, authentication, response envelope, and error mapping behind one
client class so the HTTP layer only deals with models and inputs.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. BackendClient is an
async context manager: enter it to get an authenticated client, exit to
close the connection pool. run() performs a full call and unwraps the
``{"result": ...}`` envelope. open_stream() sends a streaming request,
checks the status before handing anything back, and returns an async
iterator over the raw body bytes.

RULES:
- Always use the async context manager (async with BackendClient() as client:)
- Non-2xx responses and transport errors raise BackendError
- open_stream() raises before returning, so a failed call never starts a
  client-facing stream
- The stream iterator closes its response when exhausted or closed early
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from compat_gateway.config import BACKEND_BASE_URL, BACKEND_TIMEOUT_S, load_credentials
from compat_gateway.errors import BackendError

logger = logging.getLogger(__name__)

_ERROR_BODY_PREVIEW_CHARS = 500


class BackendClient:
    """Async client for running models on the inference backend.

    RULES:
    - Use as: async with BackendClient() as client: ...
    - account_id/api_token default to load_credentials() from .env
    - transport may be injected (httpx.MockTransport in tests)
    """

    def __init__(
        self,
        account_id: str | None = None,
        api_token: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if account_id is None or api_token is None:
            account_id, api_token = load_credentials()
        self._account_id = account_id
        self._api_token = api_token
        self._base_url = (base_url or BACKEND_BASE_URL).rstrip("/")
        self._timeout_s = timeout_s or BACKEND_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> BackendClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_token}"},
            timeout=httpx.Timeout(self._timeout_s, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "BackendClient must be used as an async context manager: "
                "async with BackendClient() as client: ..."
            )
        return self._client

    def _run_path(self, model: str) -> str:
        return f"/accounts/{self._account_id}/ai/run/{model.lstrip('/')}"

    # ------------------------------------------------------------------
    # Full responses
    # ------------------------------------------------------------------

    async def run(self, model: str, inputs: dict[str, Any]) -> Any:
        """Run a model and return its unwrapped result object.

        Args:
            model: Backend model identifier, e.g. ``@cf/openai/whisper``.
            inputs: Model input parameters (messages, prompt, audio, ...).

        Returns:
            The ``result`` member of the response envelope, or the whole
            body when there is no envelope.

        Raises:
            BackendError: on transport failure, non-2xx status, non-JSON
                body, or an envelope with ``success: false``.
        """
        client = self._ensure_client()
        try:
            resp = await client.post(self._run_path(model), json=inputs)
        except httpx.HTTPError as exc:
            raise BackendError(f"Backend request failed: {exc}") from exc

        if not resp.is_success:
            raise _status_error(resp.status_code, resp.text)

        try:
            body = resp.json()
        except ValueError as exc:
            raise BackendError(
                "Backend returned a non-JSON body", backend_status=resp.status_code
            ) from exc

        return _unwrap_envelope(body, resp.status_code)

    # ------------------------------------------------------------------
    # Streaming responses
    # ------------------------------------------------------------------

    async def open_stream(self, model: str, inputs: dict[str, Any]) -> AsyncIterator[bytes]:
        """Start a streaming model run and return its body chunk iterator.

        WHY: A backend failure detected here can still be reported as a
        plain JSON error; once the iterator is handed back, the client is
        committed to an event stream.

        HOW: Sends the request with ``stream: true`` and httpx streaming
        enabled. On a non-2xx status the body is read for the error message
        and the response closed before raising.

        Raises:
            BackendError: on transport failure or non-2xx status.
        """
        client = self._ensure_client()
        request = client.build_request(
            "POST", self._run_path(model), json={**inputs, "stream": True}
        )
        try:
            resp = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise BackendError(f"Backend request failed: {exc}") from exc

        if not resp.is_success:
            try:
                await resp.aread()
                detail = resp.text
            finally:
                await resp.aclose()
            raise _status_error(resp.status_code, detail)

        logger.debug("Opened backend stream for model %s", model)
        return _iter_body(resp)


async def _iter_body(resp: httpx.Response) -> AsyncIterator[bytes]:
    """Yield raw body chunks, closing the response on every exit path."""
    try:
        async for chunk in resp.aiter_bytes():
            yield chunk
    except httpx.HTTPError as exc:
        raise BackendError(f"Backend stream interrupted: {exc}") from exc
    finally:
        await resp.aclose()


def _status_error(status_code: int, body: str) -> BackendError:
    return BackendError(
        "Backend returned HTTP {}: {}".format(status_code, body[:_ERROR_BODY_PREVIEW_CHARS]),
        backend_status=status_code,
    )


def _unwrap_envelope(body: Any, status_code: int) -> Any:
    """Return ``body["result"]`` for REST envelopes, else the body itself."""
    if not isinstance(body, dict) or "result" not in body:
        return body
    if body.get("success") is False:
        errors = body.get("errors") or []
        messages = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors]
        raise BackendError(
            "Backend reported failure: {}".format("; ".join(messages) or "unknown error"),
            backend_status=status_code,
        )
    return body["result"]
