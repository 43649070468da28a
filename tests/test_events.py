"""Unit tests for stream line classification.

WHY: The parser decides which lines become output. Misclassifying the
sentinel ends streams early or never; letting a malformed line raise would
kill the whole response for one bad frame.
"""

import logging

from compat_gateway.core.events import Delta, Done, Ignored, parse_line


class TestDataFrames:

    def test_response_field(self):
        assert parse_line('data: {"response":"Hi"}\n') == Delta("Hi")

    def test_text_field(self):
        assert parse_line('data: {"text":"Hi"}') == Delta("Hi")

    def test_prefix_without_space(self):
        assert parse_line('data:{"response":"x"}') == Delta("x")

    def test_openai_shaped_delta(self):
        line = 'data: {"choices":[{"index":0,"delta":{"content":"yo"}}]}'
        assert parse_line(line) == Delta("yo")

    def test_openai_shaped_text_choice(self):
        assert parse_line('data: {"choices":[{"text":"yo"}]}') == Delta("yo")

    def test_payload_without_text_is_empty_delta(self):
        line = 'data: {"response":"","usage":{"prompt_tokens":3}}'
        assert parse_line(line) == Delta("")
        assert parse_line('data: {"usage":{}}') == Delta("")

    def test_leading_whitespace_in_text_is_kept(self):
        assert parse_line('data: {"response":" there"}\n') == Delta(" there")


class TestSentinel:

    def test_done(self):
        assert parse_line("data: [DONE]\n") == Done()

    def test_done_with_surrounding_whitespace(self):
        assert parse_line("data:  [DONE]  \r\n") == Done()


class TestIgnoredLines:

    def test_blank_line(self):
        assert isinstance(parse_line("\n"), Ignored)

    def test_non_data_fields(self):
        assert isinstance(parse_line("event: message\n"), Ignored)
        assert isinstance(parse_line("id: 4\n"), Ignored)
        assert isinstance(parse_line(": keep-alive\n"), Ignored)

    def test_empty_payload(self):
        assert isinstance(parse_line("data: \n"), Ignored)

    def test_malformed_json_is_ignored_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="compat_gateway.core.events"):
            event = parse_line("data: not-json\n")
        assert isinstance(event, Ignored)
        assert "malformed" in caplog.text

    def test_deeply_nested_json_is_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="compat_gateway.core.events"):
            event = parse_line("data: " + "[" * 100000 + "\n")
        assert isinstance(event, Ignored)
        assert "malformed" in caplog.text

    def test_non_object_json_is_ignored(self):
        assert isinstance(parse_line("data: [1, 2]\n"), Ignored)
        assert isinstance(parse_line('data: "text"\n'), Ignored)
