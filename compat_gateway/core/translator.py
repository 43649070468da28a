"""Translation of filtered text into OpenAI-style stream frames.

WHY: Clients expect a precise framing: for chat, a role announcement
first, then one delta per fragment, then a finish frame and the literal
``data: [DONE]`` sentinel, and nothing after that. The translator owns
those rules so the transcoder loop only has to feed it text.

HOW: SchemaTranslator reads identity fields and flags from the response's
StreamState. content() returns OutputFrame objects; done() and error()
return already-serialized SSE strings because the sentinel is not a JSON
frame.

RULES:
- Chat role frame precedes the first frame of the response, exactly once
- Empty fragments produce no frame
- done()/error() emit their frames once; afterwards every method returns []
- All frames share the state's id, created, and model
"""

from __future__ import annotations

from typing import Any

from compat_gateway.core.ir import OutputFrame, StreamKind, StreamState, sse_data

TERMINAL_SENTINEL = "data: [DONE]\n\n"


class SchemaTranslator:
    """Emits target-schema frames for one streamed response."""

    def __init__(self, state: StreamState) -> None:
        self._state = state

    @property
    def finished(self) -> bool:
        return self._state.finished

    def content(self, text: str) -> list[OutputFrame]:
        """Frames for one content fragment (role frame first, if due)."""
        if self._state.finished or not text:
            return []
        frames = self._announce_role()
        frames.append(self._frame(self._content_choice(text)))
        return frames

    def done(self) -> list[str]:
        """Finish frame plus terminal sentinel, exactly once per response."""
        if self._state.finished:
            return []
        frames = self._announce_role()
        frames.append(self._frame(self._finish_choice()))
        self._state.finished = True
        return [frame.to_sse() for frame in frames] + [TERMINAL_SENTINEL]

    def error(self, message: str, type: str = "server_error") -> list[str]:
        """One error frame plus terminal sentinel, exactly once per response."""
        if self._state.finished:
            return []
        self._state.finished = True
        return [sse_data({"error": {"message": message, "type": type}}), TERMINAL_SENTINEL]

    # ------------------------------------------------------------------
    # Frame construction
    # ------------------------------------------------------------------

    def _announce_role(self) -> list[OutputFrame]:
        state = self._state
        if state.kind is not StreamKind.CHAT or state.role_sent:
            return []
        state.role_sent = True
        return [self._frame({"index": 0, "delta": {"role": "assistant"}, "finish_reason": None})]

    def _content_choice(self, text: str) -> dict[str, Any]:
        if self._state.kind is StreamKind.CHAT:
            return {"index": 0, "delta": {"content": text}, "finish_reason": None}
        return {"index": 0, "text": text, "logprobs": None, "finish_reason": None}

    def _finish_choice(self) -> dict[str, Any]:
        if self._state.kind is StreamKind.CHAT:
            return {"index": 0, "delta": {}, "finish_reason": "stop"}
        return {"index": 0, "text": "", "logprobs": None, "finish_reason": "stop"}

    def _frame(self, choice: dict[str, Any]) -> OutputFrame:
        state = self._state
        return OutputFrame(
            id=state.id,
            object=state.object,
            created=state.created,
            model=state.model,
            choices=[choice],
        )
