"""Unit tests for OpenAI frame construction."""

import json

from compat_gateway.core.ir import StreamKind, new_stream_state
from compat_gateway.core.translator import TERMINAL_SENTINEL, SchemaTranslator


def _translator(kind=StreamKind.CHAT):
    state = new_stream_state("@cf/test/model", kind)
    return SchemaTranslator(state), state


def _decode(frame):
    return json.loads(frame[len("data: "):-2])


class TestChatFrames:

    def test_role_frame_precedes_first_content(self):
        t, _ = _translator()
        frames = [f.to_dict() for f in t.content("Hi")]
        assert len(frames) == 2
        assert frames[0]["choices"][0]["delta"] == {"role": "assistant"}
        assert frames[1]["choices"][0]["delta"] == {"content": "Hi"}

    def test_role_frame_sent_once(self):
        t, _ = _translator()
        t.content("a")
        frames = t.content("b")
        assert len(frames) == 1
        assert frames[0].choices[0]["delta"] == {"content": "b"}

    def test_frames_share_identity(self):
        t, state = _translator()
        frames = t.content("a") + t.content("b")
        for frame in frames:
            assert frame.id == state.id
            assert frame.created == state.created
            assert frame.model == "@cf/test/model"
            assert frame.object == "chat.completion.chunk"
        assert state.id.startswith("chatcmpl-")

    def test_empty_text_produces_nothing(self):
        t, state = _translator()
        assert t.content("") == []
        assert not state.role_sent

    def test_done_without_content_still_announces_role(self):
        t, _ = _translator()
        out = t.done()
        assert len(out) == 3
        assert _decode(out[0])["choices"][0]["delta"] == {"role": "assistant"}
        finish = _decode(out[1])["choices"][0]
        assert finish["delta"] == {}
        assert finish["finish_reason"] == "stop"
        assert out[2] == TERMINAL_SENTINEL

    def test_sse_serialization(self):
        t, _ = _translator()
        frame = t.content("Hi")[1].to_sse()
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert "\n" not in frame[:-2]


class TestCompletionFrames:

    def test_text_choice_shape(self):
        t, state = _translator(StreamKind.COMPLETION)
        frames = t.content("Hi")
        assert len(frames) == 1
        assert frames[0].object == "text_completion"
        assert frames[0].choices == [
            {"index": 0, "text": "Hi", "logprobs": None, "finish_reason": None}
        ]
        assert state.id.startswith("cmpl-")

    def test_finish_frame(self):
        t, _ = _translator(StreamKind.COMPLETION)
        out = t.done()
        assert len(out) == 2
        assert _decode(out[0])["choices"][0] == {
            "index": 0, "text": "", "logprobs": None, "finish_reason": "stop",
        }
        assert out[1] == TERMINAL_SENTINEL


class TestTermination:

    def test_nothing_after_done(self):
        t, _ = _translator()
        t.done()
        assert t.finished
        assert t.content("late") == []
        assert t.done() == []
        assert t.error("late") == []

    def test_error_frame_then_sentinel(self):
        t, _ = _translator()
        out = t.error("backend exploded")
        assert out == [
            'data: {"error": {"message": "backend exploded", "type": "server_error"}}\n\n',
            TERMINAL_SENTINEL,
        ]
        assert t.done() == []
