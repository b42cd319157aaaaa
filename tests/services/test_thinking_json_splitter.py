"""Tests for separating streamed prose from the trailing JSON result."""

from __future__ import annotations

import json

import pytest

from services.fact_check.exceptions import PartialStreamError, ResultParseError
from services.fact_check.splitter import ThinkingJsonSplitter


PROSE = "Let me check this. The Eiffel Tower is in Paris [1].\n"
RESULT = {
    "isFactual": True,
    "confidence": 95,
    "explanation": "It is in Paris [1].",
    "sources": ["https://example.com/eiffel"],
}
FULL_TEXT = PROSE + json.dumps(RESULT)


def _feed_all(splitter: ThinkingJsonSplitter, chunks: list[str]):
    thinking: list[str] = []
    results: list[dict] = []
    for chunk in chunks:
        update = splitter.feed(chunk)
        if update.thinking:
            thinking.append(update.thinking)
        if update.result is not None:
            results.append(update.result)
    return thinking, results


class TestSplitting:
    def test_prose_then_json_across_chunks(self) -> None:
        splitter = ThinkingJsonSplitter()
        chunks = [
            "I think ",
            'this is true. {"isFactual":tr',
            'ue,"confidence":9',
            '0,"explanation":"ok","sources":[]}',
        ]

        thinking, results = _feed_all(splitter, chunks)

        assert thinking == ["I think this is true. "]
        assert results == [
            {"isFactual": True, "confidence": 90, "explanation": "ok", "sources": []}
        ]
        assert splitter.completed is True
        assert splitter.is_collecting_json is False
        assert splitter.json_buffer == ""

    def test_thinking_concatenates_to_the_prose_verbatim(self) -> None:
        splitter = ThinkingJsonSplitter()
        chunks = [FULL_TEXT[i : i + 7] for i in range(0, len(FULL_TEXT), 7)]

        thinking, results = _feed_all(splitter, chunks)

        assert "".join(thinking) == PROSE
        assert splitter.thinking == PROSE
        assert results == [RESULT]

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 11, 64, len(FULL_TEXT)])
    def test_result_does_not_depend_on_chunk_boundaries(self, size: int) -> None:
        splitter = ThinkingJsonSplitter()
        chunks = [FULL_TEXT[i : i + size] for i in range(0, len(FULL_TEXT), size)]

        thinking, results = _feed_all(splitter, chunks)

        assert results == [RESULT]
        assert "".join(thinking) == PROSE

    def test_prose_is_released_one_chunk_late(self) -> None:
        splitter = ThinkingJsonSplitter()

        assert splitter.feed("First thought. ").thinking == ""
        assert splitter.feed("Second thought. ").thinking == "First thought. "
        assert splitter.feed("Third.").thinking == "Second thought. "

    def test_whitespace_only_prose_is_held(self) -> None:
        splitter = ThinkingJsonSplitter()

        splitter.feed("  ")
        assert splitter.feed("\n").thinking == ""
        assert splitter.feed("Hello").thinking == ""
        assert splitter.feed(" world").thinking == "  \nHello"

    def test_json_without_prose_emits_no_thinking(self) -> None:
        splitter = ThinkingJsonSplitter()

        update = splitter.feed(json.dumps(RESULT))

        assert update.thinking == ""
        assert update.result == RESULT

    def test_braces_inside_strings_do_not_end_collection_early(self) -> None:
        splitter = ThinkingJsonSplitter()

        first = splitter.feed('{"explanation": "set {a} is empty"')
        second = splitter.feed(', "isFactual": false}')

        assert first.result is None
        assert second.result == {"explanation": "set {a} is empty", "isFactual": False}

    def test_first_complete_object_is_terminal(self) -> None:
        splitter = ThinkingJsonSplitter()

        update = splitter.feed('{"isFactual": true} trailing {"isFactual": false')

        assert update.result == {"isFactual": True}
        assert splitter.feed('} more text "}"').result is None
        assert splitter.feed("anything").thinking == ""


class TestFinish:
    def test_finish_without_json_raises_parse_error(self) -> None:
        splitter = ThinkingJsonSplitter()
        splitter.feed("Only prose, no result")

        with pytest.raises(ResultParseError) as exc_info:
            splitter.finish()

        assert not isinstance(exc_info.value, PartialStreamError)
        assert str(exc_info.value) == "Stream ended without valid result"

    def test_finish_with_truncated_json_raises_partial_stream(self) -> None:
        splitter = ThinkingJsonSplitter()
        splitter.feed('{"isFactual":tru')

        with pytest.raises(PartialStreamError) as exc_info:
            splitter.finish()

        assert exc_info.value.error_code == "partial_stream"
        assert str(exc_info.value) == "Failed to parse final result"

    def test_finish_recovers_object_with_stray_control_bytes(self) -> None:
        splitter = ThinkingJsonSplitter()
        update = splitter.feed('{"isFactual": true,\x00 "confidence": 70}')
        assert update.result is None

        assert splitter.finish() == {"isFactual": True, "confidence": 70}
        assert splitter.completed is True
