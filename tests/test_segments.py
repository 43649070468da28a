"""Tests for grouping word timestamps into segments."""

import logging

import pytest

from compat_gateway.core.ir import Segment, WordTimestamp
from compat_gateway.core.segments import MAX_WORDS_PER_SEGMENT, build_segments, parse_words


def _words(texts, step=0.5):
    return [
        {"word": text, "start": i * step, "end": i * step + step * 0.8}
        for i, text in enumerate(texts)
    ]


class TestBuildSegments:

    def test_hello_world(self, hello_world_words):
        segments = build_segments(hello_world_words)
        assert segments == [
            Segment(id=0, start=0.0, end=1.2, text="Hello, world!", word_count=2),
        ]

    def test_sentence_endings_close_segments(self):
        segments = build_segments(_words(["One.", "Two!", "Three?", "four"]))
        assert [s.text for s in segments] == ["One.", "Two!", "Three?", "four"]
        assert [s.id for s in segments] == [0, 1, 2, 3]

    def test_word_cap(self):
        segments = build_segments(_words(["w"] * 25))
        assert [s.word_count for s in segments] == [10, 10, 5]
        assert all(s.word_count <= MAX_WORDS_PER_SEGMENT for s in segments)

    def test_custom_cap(self):
        segments = build_segments(_words(["w"] * 5), max_words=2)
        assert [s.word_count for s in segments] == [2, 2, 1]

    def test_every_word_in_exactly_one_segment(self):
        texts = ["a", "b.", "c", "d", "e?"] + ["f"] * 12
        segments = build_segments(_words(texts))
        assert sum(s.word_count for s in segments) == len(texts)
        assert " ".join(s.text for s in segments) == " ".join(texts)

    def test_bounds_come_from_member_words(self):
        raw = _words(["a", "b", "c."])
        segment = build_segments(raw)[0]
        assert segment.start == raw[0]["start"]
        assert segment.end == raw[2]["end"]

    def test_accepts_word_timestamp_objects(self):
        words = [WordTimestamp("Hi.", 0.0, 0.4)]
        assert build_segments(words)[0].text == "Hi."

    def test_accepts_generator(self, hello_world_words):
        segments = build_segments(w for w in hello_world_words)
        assert len(segments) == 1

    @pytest.mark.parametrize("texts", [
        ["One.", "Two!", "Three?", "four"],
        ["w"] * 25,
        ["a", "b.", "c", "d", "e?"] + ["f"] * 12 + ["end."],
    ])
    def test_segment_times_are_ordered(self, texts):
        segments = build_segments(_words(texts))
        for segment in segments:
            assert segment.start <= segment.end
        for prev, nxt in zip(segments, segments[1:]):
            assert prev.start <= nxt.start
            assert prev.end <= nxt.end

    @pytest.mark.parametrize("words", [None, [], ()])
    def test_empty_input(self, words):
        assert build_segments(words) == []

    @pytest.mark.parametrize("words", [
        [{"word": "a"}],
        [{"word": 3, "start": 0, "end": 1}],
        [{"word": "a", "start": "soon", "end": 1}],
        [{"word": "a", "start": 2, "end": 1}],
        ["not a dict"],
    ])
    def test_malformed_input_returns_empty(self, words, caplog):
        with caplog.at_level(logging.WARNING, logger="compat_gateway.core.segments"):
            assert build_segments(words) == []
        assert "malformed" in caplog.text

    def test_to_dict_omits_word_count(self, hello_world_words):
        assert build_segments(hello_world_words)[0].to_dict() == {
            "id": 0, "start": 0.0, "end": 1.2, "text": "Hello, world!",
        }


class TestParseWords:

    def test_rejects_non_list(self):
        with pytest.raises(TypeError):
            parse_words({"word": "a", "start": 0, "end": 1})

    def test_coerces_numbers_to_float(self):
        assert parse_words([{"word": "a", "start": 1, "end": 2}]) == [WordTimestamp("a", 1.0, 2.0)]
