"""Compat Gateway: OpenAI-style HTTP interface over Workers AI.

WHY: The inference backend speaks its own request/response schema and
streams token output as loosely framed server-sent events. Clients built
for the OpenAI API cannot consume it directly. This package reshapes the
backend's output into the chat/completion/transcription wire formats those
clients expect.

HOW: Three layers: backend client (httpx), core transcoding (byte chunks
→ lines → events → filtered text → output frames, plus word timestamps →
segments), and formatters (SRT/WebVTT subtitle rendering). The FastAPI
server wires them together per request.

RULES:
- Per-response state lives in one StreamState owned by one request
- Every streaming response ends with exactly one ``data: [DONE]`` line
- Normalizing a full backend response never raises
"""

__version__ = "0.1.0"
